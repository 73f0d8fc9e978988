"""Tests for okit."""
