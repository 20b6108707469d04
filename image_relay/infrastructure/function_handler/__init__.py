"""Serverless function handlers"""

from .generate_handler import GenerateFunctionHandler
from .login_handler import LoginFunctionHandler

__all__ = ["GenerateFunctionHandler", "LoginFunctionHandler"]
