"""
CampusCare Portal

A FastAPI-based portal for the campus medical unit, connecting students
(patients) and doctors: session handling, role-gated views, appointment
scheduling and medical-record viewing on top of the CampusCare API service.
"""

__version__ = "1.0.0"
