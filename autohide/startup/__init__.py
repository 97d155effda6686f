"""Startup checks run before any sweep or watch session"""
