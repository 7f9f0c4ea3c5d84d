from typing import Any


def ok(data: Any = None, message: str | None = None) -> dict:
    out: dict = {"success": True}
    if message is not None:
        out["message"] = message
    if data is not None:
        out["data"] = data
    return out


def fail(message: str, **extra) -> dict:
    return {"success": False, "message": message, **extra}
