"""Runtime pieces of a test run: process launch, orchestration, locale matrix."""
