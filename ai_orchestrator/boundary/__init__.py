"""Boundary adapters: relational store and external AI job service."""
