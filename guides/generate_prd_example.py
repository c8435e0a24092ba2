"""Start a PRD generation job and follow its progress events."""

import asyncio

from vibeflow import ToolResult, get_runtime


async def main():
    runtime = get_runtime()
    await runtime.start()

    async with await runtime.notifier.subscribe("guide-session") as events:
        handle = await runtime.invoke_tool(
            "generate-prd",
            {"productDescription": "A collaborative todo app for small teams"},
            session_id="guide-session",
        )
        print(f"✅ {handle.initial_message}")

        async for event in events:
            print(f"[{event.status.value}] {event.message}")
            if event.job_id == handle.job_id and event.status.is_terminal:
                break

    job = runtime.job_manager.get_job(handle.job_id)
    result: ToolResult = job.result
    print(result.first_text[:500])

    await runtime.stop()


if __name__ == "__main__":
    asyncio.run(main())
