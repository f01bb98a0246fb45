# topup/utils/error_codes.py

ERROR_CODES = {
    "VALIDATION_ERROR": "VALIDATION_ERROR",
    "UNAUTHORIZED": "UNAUTHORIZED",
    "FORBIDDEN": "FORBIDDEN",
    "NOT_FOUND": "NOT_FOUND",
    "CONFLICT": "CONFLICT",
    "INVALID_STATE": "INVALID_STATE",
    "UPSTREAM_ERROR": "UPSTREAM_ERROR",
    "SERVER_ERROR": "SERVER_ERROR",
}

HTTP_STATUS_TO_ERROR_CODE = {
    400: ERROR_CODES["VALIDATION_ERROR"],
    401: ERROR_CODES["UNAUTHORIZED"],
    403: ERROR_CODES["FORBIDDEN"],
    404: ERROR_CODES["NOT_FOUND"],
    409: ERROR_CODES["CONFLICT"],
    422: ERROR_CODES["VALIDATION_ERROR"],
    502: ERROR_CODES["UPSTREAM_ERROR"],
    504: ERROR_CODES["UPSTREAM_ERROR"],
    500: ERROR_CODES["SERVER_ERROR"],
}
