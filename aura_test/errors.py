"""Exception hierarchy for Lightning test runs."""


class AuraTestError(Exception):
    """Base class for all errors surfaced to the command line."""

    category = "Aura test error"


class ConfigurationError(AuraTestError):
    """Raised for invalid run options or a malformed config file."""

    category = "Configuration error"


class ReporterNotFoundError(ConfigurationError):
    """Raised when a result format does not name a registered reporter."""


class ServerLifecycleError(AuraTestError):
    """Raised when the automation server cannot be installed or started."""

    category = "Automation server error"


class MissingRuntimeError(ServerLifecycleError):
    """Raised when a system dependency needed to run the server is missing."""


class TestRunError(AuraTestError):
    """Raised when talking to the browser or the org fails mid-run."""

    __test__ = False

    category = "Test run error"


class SessionError(TestRunError):
    """Raised when the browser session cannot be opened or navigated."""


class FrontDoorUrlError(TestRunError):
    """Raised when the authenticated app URL cannot be resolved."""


class ExtractionError(TestRunError):
    """Raised when results cannot be read from the page."""


class ResultsNotFoundError(ExtractionError):
    """Raised when the results container stays empty until the timeout."""


class ScratchOrgRequiredError(AuraTestError):
    """Raised when the target org is not a scratch org."""

    category = "Org error"


class ResultRetrievalFailedError(AuraTestError):
    """Raised when a run finished without producing usable results."""

    category = "Test result retrieval failed"


class ArtifactError(AuraTestError):
    """Raised when result files or the output directory cannot be written."""

    category = "Artifact error"


class SfdxError(AuraTestError):
    """Raised when the sfdx CLI fails or returns a non-zero status."""

    category = "sfdx error"


class ReleaseError(AuraTestError):
    """Base class for release lookup failures."""

    category = "Release lookup error"


class ReleaseNotFoundError(ReleaseError):
    """Raised when the requested release version does not exist."""


class ReleaseUnreachableError(ReleaseError):
    """Raised when the release feed cannot be reached."""


class PackageIdExtractionError(ReleaseError):
    """Raised when no package id can be found in the release notes."""


class InvalidPackageTypeError(ReleaseError):
    """Raised for an unknown package type keyword."""
