"""Check bodies, one module per catalog category.

Every check is an ``async def check_x(ctx: CheckContext) -> CheckOutcome``.
Raising a SelfTestError (usually CheckFailure or PreconditionError) is the
same as returning a failed outcome; the sequencer records both as errors.
"""
