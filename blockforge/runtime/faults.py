from typing import Optional


class RuntimeFault(Exception):
    """An exception raised inside a handler or a suspended task.

    Faults are recorded by the runtime and logged; they never reach the frame
    loop.
    """

    def __init__(self, source: str, cause: BaseException, *, owner_id: Optional[str] = None):
        self.source = source
        self.cause = cause
        self.owner_id = owner_id
        where = f"'{source}'"
        if owner_id is not None:
            where += f" (object '{owner_id}')"
        super().__init__(f"Script fault in {where}: {type(cause).__name__}: {cause}")
