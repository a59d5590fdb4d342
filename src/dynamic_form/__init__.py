"""
Dynamic Form - Schema-Driven Multi-Step Form Engine

This package contains the core implementation of the schema-driven form engine
that turns a remotely supplied form description into a live validator, per-section
navigation gating and a submission pipeline.

Modules:
    schemas: Pydantic models for form descriptors and engine state
    engine: Schema compiler, default-value synthesizer, form engine and renderer dispatch
    services: Collaborators for descriptor fetch, user registration, submission and notifications
    config: Application settings loaded from the environment
    utils: Utility functions and helper modules
"""

__version__ = "0.1.0"
__author__ = "Dynamic Form Team"
