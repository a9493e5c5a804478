"""Integration tests for the facility service and its collaborators"""
