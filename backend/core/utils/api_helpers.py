# ------------------------------ IMPORTS ------------------------------
from datetime import datetime, timezone
from typing import Any, Dict
from fastapi import HTTPException

# ------------------------------ API HELPER FUNCTIONS ------------------------------

def validate_credentials(username: str, password: str) -> None:
    """Validate username and password are provided."""
    if not username or not password:
        raise HTTPException(status_code=400, detail="Username and password required")

def create_error_response(message: str) -> Dict[str, Any]:
    """Create standardized error response."""
    return {
        "success": False,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }

# ------------------------------ END OF FILE ------------------------------
