"""Core domain package for eventscope.

Core contains line classification, key=value augmentation and the query
engine without any subprocess, filesystem or HTTP code, keeping the parsing
logic portable across log sources.
"""
