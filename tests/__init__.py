"""Tests - attestation circuits, proof pipeline and primitives."""
