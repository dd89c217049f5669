"""Exceptions raised by texorganizer."""

from __future__ import annotations


class OrganizerError(Exception):
    """Base class for all texorganizer failures."""

    exit_code = 1


class UsageError(OrganizerError):
    """Bad command-line invocation: missing argument, missing file or wrong extension."""

    exit_code = 1


class ProjectDirectoryError(OrganizerError):
    """The project directory cannot be entered, or a destination folder cannot be created."""

    exit_code = 2


class ToolFailedError(OrganizerError):
    """A compiler or bibliography pass exited non-zero while strict mode is on."""

    exit_code = 3


class SettingsFileError(OrganizerError):
    """The settings file named on the command line cannot be read."""

    exit_code = 2
