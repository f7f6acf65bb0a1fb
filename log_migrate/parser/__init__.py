from .java_parser import JavaSourceParser

__all__ = ["JavaSourceParser"]
