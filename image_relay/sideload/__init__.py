"""Sideload (JSON-RPC over stdio) mode"""
