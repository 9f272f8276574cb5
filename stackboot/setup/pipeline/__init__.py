"""Package boundary for setup pipeline orchestration.

This package holds the step descriptors, the orchestrator that iterates
them, the shell process runner and the summary table helpers. The
module itself is intentionally lightweight and does not contain logic.

Typical usage::

    from stackboot.setup.pipeline.orchestrator import SetupOrchestrator
    from stackboot.setup.pipeline.steps import SetupRequest
    request = SetupRequest.from_cli("local")
    SetupOrchestrator(project_root).run(request)

"""
