from flask import jsonify


def api_response(data=None, message: str = "success", status: int = 200):
    """Success envelope: {statusCode, data, message, success}."""
    return jsonify(
        {
            "statusCode": status,
            "data": data if data is not None else {},
            "message": message,
            "success": status < 400,
        }
    ), status
