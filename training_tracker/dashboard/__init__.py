"""Web dashboard"""
