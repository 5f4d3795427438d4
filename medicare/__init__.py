"""
MediCare Appointment Service

A FastAPI-based clinic appointment service with patient, doctor and admin
portals, role-based access control, and token assignment on acceptance.
"""

__version__ = "1.0.0"
