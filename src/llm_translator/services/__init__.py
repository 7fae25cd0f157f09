"""
Application services for LLM Translator.
"""
