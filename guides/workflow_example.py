"""Run the bundled product-kickoff workflow in the foreground."""

import asyncio

from vibeflow import ToolContext, get_runtime


async def main():
    runtime = get_runtime()
    definition = runtime.workflows["product-kickoff"]

    await runtime.start()
    result = await runtime.executor.run(
        definition,
        {"productDescription": "A recipe sharing app"},
        runtime.config,
        ToolContext(session_id="guide-session"),
    )
    await runtime.stop()

    for step in result.trace:
        print(f"🔗 {step.step_id}: {step.status.value}")
    print(f"📋 {result.summary}")
    if result.error:
        print(f"❌ {result.error['message']}")


if __name__ == "__main__":
    asyncio.run(main())
