"""
Exceptions that abort an import. Errors that are collected per object (incompatible objects, failed creations)
are defined next to the code that collects them.
"""

from dataclasses import dataclass


class InvalidOptionsError(ValueError):
    """
    Raised when the import options are invalid. Always raised before any I/O takes place.
    """


class GeneratorError(Exception):
    """
    Raised by a generator when the manifest can not be transformed into a template.
    """


class TemplateProcessingError(Exception):
    """
    Raised when parameters of a template can not be resolved. Raised before any object is created.
    """


@dataclass
class BulkApplyError(Exception):
    """
    Raised when at least one object could not be created. Objects that were created are not rolled back.
    """

    errors: list[Exception]
    total: int

    def __str__(self) -> str:
        return f"{len(self.errors)} of {self.total} object(s) could not be created"
