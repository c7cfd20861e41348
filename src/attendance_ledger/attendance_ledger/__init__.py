"""Attendance Ledger package.

Organized by feature (attendance, users, requests, nfc, reports, notifications):
pure domain logic and services over repository protocols, MySQL repositories,
and a thin Flask JSON layer registered per feature.
"""
