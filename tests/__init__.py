"""
Test suite for the CampusCare Portal.

Contains unit and integration tests for the session, access gate and
appointment lifecycle, run against an in-process CampusCare service double.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
