from typing import Dict, List

from fastapi.responses import JSONResponse


def success_response(data=None, message="OK", status=200):
    return JSONResponse(
        status_code=status,
        content={
            "ok": True,
            "data": data or {},
            "error": None,
            "message": message,
        }
    )


def error_response(error_code, status=400, message="An error occurred", data=None):
    return JSONResponse(
        status_code=status,
        content={
            "ok": False,
            "data": data or {},
            "error": error_code,
            "message": message,
        }
    )


def validation_error_response(errors: Dict[str, List[str]], message="Please correct the highlighted fields"):
    """Field-level form errors, keyed by field name"""
    return error_response(
        "validation_error",
        status=400,
        message=message,
        data={"errors": errors},
    )
