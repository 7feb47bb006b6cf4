"""Core domain package for rmtguard.

Core contains normalization, the listing codec, rule matching and the filter
decision engine without any host-process or transport-specific code.
"""
