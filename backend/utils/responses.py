def ok(data=None, message: str | None = None, **extra) -> dict:
    body = {"success": True}
    if message:
        body["message"] = message
    body.update(extra)
    body["data"] = data
    return body


def ok_list(items: list, message: str | None = None, **extra) -> dict:
    return ok(items, message, count=len(items), **extra)
