"""Attendance & Payroll package.

Feature modules (attendance, payroll, signatures, ...) sit behind a thin Flask
controller layer, with services depending on repository protocols so the MySQL
implementations can be swapped for in-memory ones.
"""
