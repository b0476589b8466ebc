"""installkit - Error taxonomy.

Gate checks never raise; they collapse failures to safe booleans.
Mutations (template import, run-once scripts, config persistence) raise
InstallError subclasses carrying an error code.
"""

from enum import StrEnum


class InstallErrorCode(StrEnum):
    """Error codes surfaced to operators."""

    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_IMPORT_FAILED = "TEMPLATE_IMPORT_FAILED"
    RUNONCE_FAILED = "RUNONCE_FAILED"
    LOCALCONFIG_INVALID = "LOCALCONFIG_INVALID"
    INSTALL_LOCKED = "INSTALL_LOCKED"
    DATABASE_UNAVAILABLE = "DATABASE_UNAVAILABLE"
    ADMIN_EXISTS = "ADMIN_EXISTS"
    ADMIN_CREATE_FAILED = "ADMIN_CREATE_FAILED"


class InstallError(Exception):
    """Base exception for installer errors."""

    def __init__(self, error_code: str, message: str):
        self.error_code = error_code
        self.message = message
        super().__init__(f"{error_code}: {message}")


class TemplateNotFoundError(InstallError):
    """Seed template missing or outside the templates root."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(InstallErrorCode.TEMPLATE_NOT_FOUND, f"Template not found: {name}")


class TemplateImportError(InstallError):
    """A statement of a seed template failed; remaining statements were skipped."""

    def __init__(self, template: str, line_number: int, statement: str, reason: str):
        self.template = template
        self.line_number = line_number
        self.statement = statement
        super().__init__(
            InstallErrorCode.TEMPLATE_IMPORT_FAILED,
            f"Import of {template} failed at line {line_number}: {reason}",
        )


class RunOnceError(InstallError):
    """A run-once script failed and was left in place."""

    def __init__(self, script: str, reason: str):
        self.script = script
        super().__init__(InstallErrorCode.RUNONCE_FAILED, f"Run-once script {script} failed: {reason}")


class LocalConfigError(InstallError):
    """The persisted configuration file cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(InstallErrorCode.LOCALCONFIG_INVALID, f"Invalid config file {path}: {reason}")


class DatabaseUnavailableError(InstallError):
    """An operation needs a database connection but none is configured."""

    def __init__(self):
        super().__init__(InstallErrorCode.DATABASE_UNAVAILABLE, "No database connection configured")
