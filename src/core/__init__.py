"""
Core business logic for profile media.

This module is framework-agnostic - it doesn't import FastAPI, boto3,
or any infrastructure concerns. This separation means we can test the
key and URL handling in isolation.
"""
