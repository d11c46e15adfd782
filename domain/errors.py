class PipelineError(Exception):
    """Base class for failures surfaced by the generation pipeline."""


class ServiceFailure(PipelineError):
    """The generative text service could not be reached or refused the request.

    The underlying exception, when there is one, is attached as ``__cause__``.
    """


class MalformedSelectionResponse(PipelineError):
    """The skill selection response held no usable ``selected_competencies`` object."""
