import asyncio

from pydantic import ValidationError

from emoji_gate.errors import GateError
from emoji_gate.gate import run_gate
from emoji_gate.services.gitlab import GitLabClient
from emoji_gate.settings import load_settings, missing_required

EXIT_APPROVED = 0
EXIT_NOT_APPROVED = 1


async def main() -> int:
    try:
        settings = load_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}")
        return EXIT_NOT_APPROVED

    missing = missing_required(settings)
    if missing:
        print(f"Missing required configuration. Need {', '.join(missing)}.")
        return EXIT_NOT_APPROVED

    if settings.insecure:
        print("Warning: insecure mode is on; MR authors may approve their own MRs.")

    gl = GitLabClient(
        hostname=settings.gitlab_hostname,
        token=settings.gitlab_token,
        scheme=settings.gitlab_scheme,
        timeout=settings.http_timeout,
    )

    try:
        verdict = await run_gate(gl, settings)
    except GateError as e:
        print(f"Error checking mandatory approval: {e}")
        return EXIT_NOT_APPROVED

    if verdict.approved:
        print(f"Mandatory approval was provided by: {list(verdict.approved_by)}")
        return EXIT_APPROVED

    print("Mandatory approval was not found")
    return EXIT_NOT_APPROVED


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
