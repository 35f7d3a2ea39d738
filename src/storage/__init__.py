"""Blob storage layer.

This module defines the async key/value contract the publisher writes to.
It ships local-directory, in-memory, and S3 backends.
"""
