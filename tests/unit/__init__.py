"""Unit tests for domain components"""
