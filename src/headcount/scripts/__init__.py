"""Operational scripts for the headcount service."""
