"""
Test Mocks
==========
Fakes for the hub client, provisioner, network monitor and peripherals.

Module: tests.mocks
Version: 1.0.0
"""
