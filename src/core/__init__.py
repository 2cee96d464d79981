"""
Core Module
===========
Shared types, constants and exceptions for the HubLink device agent.

Module: core
Version: 1.0.0
"""
