"""
Test support utilities for integration-operator tests.

Builders for platform objects live in ``tests._support.builders``; they keep
test bodies focused on the one field a test cares about.
"""
