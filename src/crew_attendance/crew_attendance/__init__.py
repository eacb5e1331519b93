"""Crew Attendance package.

Feature modules (attendance, shifts, sessions, timesheets, overtime, ...) with a
thin Flask JSON controller layer over service/repository layers.
"""
