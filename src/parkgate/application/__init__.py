"""Application layer: the facility service, its results and reporting DTOs"""
