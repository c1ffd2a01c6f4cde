from typing import Any, Dict, Optional


def api_success(data: Any) -> Dict[str, Any]:
	return {"success": True, "data": data, "error": None}


def api_error(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
	error: Dict[str, Any] = {"code": code, "message": message}
	if details is not None:
		error["details"] = details
	return {"success": False, "data": None, "error": error}


def user_error(field: str, message: str) -> Dict[str, Any]:
	"""A non-fatal mutation error, reported inside a successful envelope."""
	return {"field": [field], "message": message}
