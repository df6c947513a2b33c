"""
Core upload and signing logic.

This module is framework-agnostic - it doesn't import FastAPI or boto3.
The object store and credential issuer are reached through protocols,
so the scene, path and policy rules can be tested in isolation.
"""
