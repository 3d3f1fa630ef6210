from fastapi.responses import JSONResponse


def ok(data=None):
    """Standard success envelope."""
    return {"ok": True, "data": data, "error": None}


def error(code: str = "internal_error", message: str = "An internal error occurred"):
    """Standard error envelope."""
    return {"ok": False, "data": None, "error": {"code": code, "message": message}}


def created(data, location: str):
    """201 response with the success envelope and a Location header."""
    return JSONResponse(status_code=201, content=ok(data), headers={"Location": location})
