"""
API Response Models
===================

Standardized API response models.
"""

class APIResponse:
    """Standard API response format"""

    @staticmethod
    def success(data=None, message="Success", warning=None):
        response = {
            "success": True,
            "message": message,
            "data": data
        }
        if warning:
            response["warning"] = warning
        return response

    @staticmethod
    def error(message="Error", error_code=None, details=None):
        return {
            "success": False,
            "message": message,
            "error_code": error_code,
            "details": details or {}
        }

    @staticmethod
    def paginated(data, pagination, message="Success"):
        return {
            "success": True,
            "message": message,
            "data": data,
            "pagination": pagination
        }
