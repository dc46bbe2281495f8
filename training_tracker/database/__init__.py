"""Confirmation stores"""
