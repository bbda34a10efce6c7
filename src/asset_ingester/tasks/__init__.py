"""Background tasks run by an external scheduler.

Each task declares a name, an advisory lock duration and an attempt ceiling,
and runs one attempt per ``execute`` call. Leasing, re-enqueueing and
attempt counting belong to the scheduler; tasks only classify each failure
as retryable or unrecoverable.
"""
