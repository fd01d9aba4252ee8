"""Synchronization engine: catalog diffing, classification dispatch and naming."""
