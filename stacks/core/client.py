import time
import httpx
from typing import Optional
from stacks.configs import STACKS_API_URL, STACKS_HTTP_HEADERS
import logging

logger = logging.getLogger(__name__)

class StacksClient:
    """HTTP client for the Stacks API. Retries requests the server reports as busy."""

    API_URL = STACKS_API_URL
    HTTP_HEADERS = STACKS_HTTP_HEADERS
    MAX_RETRIES = 3
    RETRY_DELAY = 0.5

    def __init__(self, api_url: Optional[str] = None, transport=None,
                 max_retries: int = MAX_RETRIES, retry_delay: float = RETRY_DELAY,
                 timeout: int = 30):
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.http = httpx.Client(
            base_url=api_url or self.API_URL,
            headers=self.HTTP_HEADERS,
            transport=transport,
            timeout=timeout,
        )

    def close(self):
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def list_users(self) -> dict:
        return self._request("GET", "/users")

    def list_books(self) -> dict:
        return self._request("GET", "/books")

    def list_loans(self, user_id: Optional[int] = None) -> dict:
        params = {"user_id": user_id} if user_id is not None else None
        return self._request("GET", "/loans", params=params)

    def add_user(self, name: str, email: str, role: str = "student") -> dict:
        return self._request("POST", "/users", json={"name": name, "email": email, "role": role})

    def add_book(self, title: str, author: str, total_copies: int) -> dict:
        return self._request("POST", "/books", json={
            "title": title, "author": author, "total_copies": total_copies})

    def borrow(self, user_id: int, book_id: int) -> dict:
        return self._request("POST", "/loans", json={"user_id": user_id, "book_id": book_id})

    def return_loan(self, loan_id: int) -> dict:
        return self._request("POST", f"/loans/{loan_id}/return")

    def _request(self, method: str, path: str, **kwargs) -> dict:
        for attempt in range(self.max_retries + 1):
            try:
                response = self.http.request(method, path, **kwargs)
                body = response.json()
            except (httpx.HTTPError, ValueError) as e:
                logger.error(f"Error calling Stacks ({method} {path}): {e}")
                return {"success": False, "error": "http_error", "message": str(e)}

            if body.get("retry") and attempt < self.max_retries:
                delay = float(response.headers.get("Retry-After", self.retry_delay))
                logger.warning(
                    f"{method} {path} busy, retry {attempt + 1}/{self.max_retries} in {delay}s")
                time.sleep(delay)
                continue
            return body
