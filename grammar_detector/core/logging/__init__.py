"""Structured logging"""
