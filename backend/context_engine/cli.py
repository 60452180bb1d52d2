"""
Command-line client for the Context Engine REST API.

Usage:
    context-engine-client store --content "some text" --tags a,b
    context-engine-client search --query "text" --limit 5
    context-engine-client --server http://localhost:3000 get --id <uuid>
    context-engine-client interactive
"""
import argparse
import sys
from typing import Any, Optional

import httpx

DEFAULT_SERVER = "http://localhost:3000"


class ClientError(Exception):
    """Non-success response from the server."""

    def __init__(self, status_code: int, code: str, message: str):
        super().__init__(f"Error ({status_code}): {message} ({code})")
        self.status_code = status_code
        self.code = code
        self.message = message


class ContextClient:
    """Thin synchronous wrapper around the REST API."""

    def __init__(
        self,
        server: str = DEFAULT_SERVER,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client = httpx.Client(base_url=server, timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "ContextClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        response = self._client.request(method, path, **kwargs)
        if response.is_success:
            return response.json() if response.content else None

        try:
            body = response.json()
            code = body.get("code", "UNKNOWN")
            message = body.get("message") or str(body.get("detail", ""))
        except ValueError:
            code, message = "UNKNOWN", "Failed to parse error response"
        raise ClientError(response.status_code, code, message)

    def store(self, content: str, tags: Optional[list[str]] = None, **fields: Any) -> dict:
        payload = {"content": content, "tags": tags or []}
        payload.update({k: v for k, v in fields.items() if v is not None})
        return self._request("POST", "/contexts", json=payload)

    def get(self, context_id: str) -> dict:
        return self._request("GET", f"/contexts/{context_id}")

    def list_contexts(self, tags: Optional[list[str]] = None, limit: Optional[int] = None) -> list[dict]:
        params: dict[str, Any] = {}
        if tags:
            params["tags"] = ",".join(tags)
        if limit is not None:
            params["limit"] = limit
        return self._request("GET", "/contexts", params=params)

    def update(self, context_id: str, **fields: Any) -> dict:
        payload = {k: v for k, v in fields.items() if v is not None}
        return self._request("PUT", f"/contexts/{context_id}", json=payload)

    def delete(self, context_id: str) -> None:
        self._request("DELETE", f"/contexts/{context_id}")

    def search(
        self,
        query: str,
        tags: Optional[list[str]] = None,
        limit: Optional[int] = None,
        min_score: Optional[float] = None,
    ) -> dict:
        payload: dict[str, Any] = {"query": query}
        if tags:
            payload["tags"] = tags
        if limit is not None:
            payload["limit"] = limit
        if min_score is not None:
            payload["min_score"] = min_score
        return self._request("POST", "/search", json=payload)

    def references(self, ids: list[str]) -> list[dict]:
        return self._request("POST", "/references", json={"ids": ids})

    def ping(self) -> int:
        """Probe the server with a short timeout and return the status code."""
        return self._client.get("/health", timeout=5.0).status_code


def parse_tags(value: Optional[str]) -> Optional[list[str]]:
    """Split a comma-separated tag string, dropping blanks."""
    if value is None:
        return None
    return [t.strip() for t in value.split(",") if t.strip()]


# ========================================
# Output
# ========================================

def print_context(context: dict, heading: Optional[str] = None) -> None:
    if heading:
        print(heading)
    print(f"ID: {context['id']}")
    print(f"Content: {context['content']}")
    if context.get("source"):
        print(f"Source: {context['source']}")
    if context.get("content_type"):
        print(f"Content type: {context['content_type']}")
    print(f"Tags: {', '.join(context.get('tags', [])) or '-'}")
    print(f"Created at: {context['created_at']}")


def print_matches(result: dict) -> None:
    matches = result.get("matches", [])
    print(f"Found {result.get('total_matches', len(matches))} matching contexts")
    for i, match in enumerate(matches, 1):
        print(f"\n--- Match {i} (score: {match['score']:.2f}) ---")
        print_context(match["context"])
        chunks = match.get("chunks", [])
        print(f"Matching chunks: {len(chunks)}")
        for chunk in chunks[:2]:
            print(f"  - [{chunk['score']:.2f}] {chunk['content']}")
        if len(chunks) > 2:
            print(f"  ... {len(chunks) - 2} more chunks")


# ========================================
# Entry point
# ========================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="context-engine-client",
        description="Client for the Context Engine server",
    )
    parser.add_argument("--server", "-s", default=DEFAULT_SERVER, help="Server URL")
    sub = parser.add_subparsers(dest="command", required=True)

    store = sub.add_parser("store", help="Store a new context")
    store.add_argument("--content", "-c", required=True)
    store.add_argument("--tags", "-t", help="Comma-separated tags")
    store.add_argument("--source")
    store.add_argument("--content-type")

    get = sub.add_parser("get", help="Retrieve a context by ID")
    get.add_argument("--id", "-i", required=True)

    list_ = sub.add_parser("list", help="List contexts")
    list_.add_argument("--tags", "-t", help="Comma-separated tags; all must match")
    list_.add_argument("--limit", "-l", type=int, default=10)

    search = sub.add_parser("search", help="Search contexts by content")
    search.add_argument("--query", "-q", required=True)
    search.add_argument("--tags", "-t", help="Comma-separated tags; any may match")
    search.add_argument("--limit", "-l", type=int, default=5)
    search.add_argument("--min-score", type=float)

    update = sub.add_parser("update", help="Update an existing context")
    update.add_argument("--id", "-i", required=True)
    update.add_argument("--content", "-c")
    update.add_argument("--tags", "-t", help="Comma-separated tags")
    update.add_argument("--source")
    update.add_argument("--content-type")

    delete = sub.add_parser("delete", help="Delete a context")
    delete.add_argument("--id", "-i", required=True)

    refs = sub.add_parser("refs", help="Fetch contexts by ID")
    refs.add_argument("ids", nargs="+")

    sub.add_parser("interactive", help="Prompt for commands in a loop")

    return parser


def run_command(client: ContextClient, args: argparse.Namespace) -> None:
    if args.command == "store":
        context = client.store(
            args.content,
            tags=parse_tags(args.tags),
            source=args.source,
            content_type=args.content_type,
        )
        print_context(context, "Context stored successfully!")
    elif args.command == "get":
        print_context(client.get(args.id))
    elif args.command == "list":
        contexts = client.list_contexts(tags=parse_tags(args.tags), limit=args.limit)
        print(f"Found {len(contexts)} contexts:")
        for i, context in enumerate(contexts, 1):
            print_context(context, f"\n--- Context {i} ---")
    elif args.command == "search":
        result = client.search(
            args.query,
            tags=parse_tags(args.tags),
            limit=args.limit,
            min_score=args.min_score,
        )
        print_matches(result)
    elif args.command == "update":
        context = client.update(
            args.id,
            content=args.content,
            tags=parse_tags(args.tags),
            source=args.source,
            content_type=args.content_type,
        )
        print_context(context, "Context updated successfully!")
    elif args.command == "delete":
        client.delete(args.id)
        print("Context deleted successfully!")
    elif args.command == "refs":
        contexts = client.references(args.ids)
        print(f"Resolved {len(contexts)} of {len(args.ids)} references")
        for i, context in enumerate(contexts, 1):
            print_context(context, f"\n--- Context {i} ---")


# ========================================
# Interactive mode
# ========================================

MENU = [
    ("1", "Store a new context"),
    ("2", "Get a context by ID"),
    ("3", "List contexts"),
    ("4", "Search contexts"),
    ("5", "Update a context"),
    ("6", "Delete a context"),
    ("q", "Quit"),
]


def prompt(label: str) -> Optional[str]:
    """Read one line; blank answers come back as None."""
    return input(f"{label}: ").strip() or None


def prompt_int(label: str, default: int) -> int:
    value = prompt(label)
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def read_command(choice: str) -> Optional[argparse.Namespace]:
    """
    Ask for the arguments of a menu choice.

    Returns None when the choice is unknown or the user backs out.
    """
    if choice == "1":
        content = prompt("Enter content")
        if content is None:
            print("Content is required.")
            return None
        return argparse.Namespace(
            command="store",
            content=content,
            source=prompt("Enter source (optional)"),
            content_type=prompt("Enter content type (optional)"),
            tags=prompt("Enter tags (comma-separated, optional)"),
        )
    if choice == "2":
        return argparse.Namespace(command="get", id=prompt("Enter context ID"))
    if choice == "3":
        return argparse.Namespace(
            command="list",
            tags=prompt("Enter tags to filter (comma-separated, optional)"),
            limit=prompt_int("Enter limit (default 10)", 10),
        )
    if choice == "4":
        return argparse.Namespace(
            command="search",
            query=prompt("Enter search query") or "",
            tags=prompt("Enter tags to filter (comma-separated, optional)"),
            limit=prompt_int("Enter limit (default 5)", 5),
            min_score=None,
        )
    if choice == "5":
        return argparse.Namespace(
            command="update",
            id=prompt("Enter context ID to update"),
            content=prompt("Enter new content (blank keeps current)"),
            source=prompt("Enter new source (optional)"),
            content_type=prompt("Enter new content type (optional)"),
            tags=prompt("Enter new tags (comma-separated, optional)"),
        )
    if choice == "6":
        context_id = prompt("Enter context ID to delete")
        confirm = prompt("Are you sure you want to delete this context? (y/n)") or ""
        if confirm.lower() != "y":
            print("Delete operation cancelled.")
            return None
        return argparse.Namespace(command="delete", id=context_id)

    print("Invalid command. Please enter a number from 1-6 or 'q' to quit.")
    return None


def run_interactive(client: ContextClient, server: str) -> int:
    """Menu loop over the same commands as the subcommands."""
    print("=== Context Engine Interactive Client ===")
    print(f"Server: {server}")
    print("\nChecking server connection...")
    try:
        status = client.ping()
    except httpx.HTTPError as e:
        print(f"Failed to connect to server: {e}")
        print(f"Please make sure the server is running at {server}")
        return 1
    if status == 200:
        print("Server connection successful!")
    else:
        print(f"Connected to server but received status code: {status}")

    print("\nAvailable commands:")
    for key, label in MENU:
        print(f"  {key}. {label}")

    while True:
        try:
            choice = input("\nEnter command (1-6, q): ").strip()
        except EOFError:
            choice = "q"
        if choice in ("q", "quit", "exit"):
            print("Goodbye!")
            return 0

        args = read_command(choice)
        if args is None:
            continue
        try:
            run_command(client, args)
        except ClientError as e:
            print(str(e), file=sys.stderr)


def main(argv: Optional[list[str]] = None, transport: Optional[httpx.BaseTransport] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        with ContextClient(args.server, transport=transport) as client:
            if args.command == "interactive":
                return run_interactive(client, args.server)
            run_command(client, args)
    except ClientError as e:
        print(str(e), file=sys.stderr)
        return 1
    except httpx.HTTPError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
