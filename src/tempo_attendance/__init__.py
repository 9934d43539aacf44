"""Tempo attendance package.

Organized by feature modules (roster, shifts, storage, reports, ...) with a thin
Flask controller layer on top of service and repository layers.
"""
