"""
Pure domain layer: pattern model, formula language, generation pipeline.

Nothing in this package performs I/O beyond structured logging. Services in
journal_kernel.services wire it to the repository, posting and
generation-log collaborators.
"""
