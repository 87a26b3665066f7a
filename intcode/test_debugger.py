"""
TUI debugger driven headless through Textual's test pilot.
"""

from __future__ import annotations

import asyncio

from intcode.debugger import IntcodeDebugger
from intcode.program_runner import ProgramRunner


def make_app(listing: str, inputs=()) -> IntcodeDebugger:
    runner = ProgramRunner()
    runner.load_listing(listing)
    runner.add_inputs(inputs)
    return IntcodeDebugger(runner)


def drive(app: IntcodeDebugger, scenario):
    async def run():
        async with app.run_test() as pilot:
            await scenario(app, pilot)
    asyncio.run(run())


async def run_to_end(app, pilot):
    await pilot.press("r")
    await app.workers.wait_for_complete()
    await pilot.pause()


def test_step_and_prompted_input():
    app = make_app("3,0,4,0,99")

    async def scenario(app, pilot):
        await pilot.press("s")
        assert app.runner.phase == "waiting"

        await pilot.press("i", "4", "2", "enter")
        assert app.runner.machine.inputs.pending == [42]
        assert app.runner.phase == "running"

        await run_to_end(app, pilot)
        assert app.runner.phase == "halted"
        assert app.runner.output_lines == ["42"]

    drive(app, scenario)


def test_rejected_input_is_reported():
    app = make_app("3,0,4,0,99")

    async def scenario(app, pilot):
        await pilot.press("i", "x", "enter")
        assert app.runner.output_lines[-1].startswith("\\[ERROR]")
        assert app.runner.machine.inputs.pending == []

        await pilot.press("escape")
        assert not app.query_one("#input-box").display

    drive(app, scenario)


def test_run_stops_at_breakpoint():
    app = make_app("104,1,104,2,104,3,99")

    async def scenario(app, pilot):
        await pilot.press("b")
        assert app.breakpoints == {0}
        await pilot.press("b")
        assert app.breakpoints == set()

        app.breakpoints.add(4)
        await run_to_end(app, pilot)
        assert app.runner.machine.ip.value == 4
        assert app.runner.output_lines == ["1", "2"]
        assert app.runner.phase == "running"

        await run_to_end(app, pilot)
        assert app.runner.phase == "halted"
        assert app.runner.output_lines == ["1", "2", "3"]

    drive(app, scenario)


def test_fault_is_reported():
    app = make_app("98")

    async def scenario(app, pilot):
        await pilot.press("n")
        assert app.runner.phase == "fault"
        assert app.runner.output_lines[-1].startswith("\\[ERROR]")

    drive(app, scenario)


def test_scripted_input_runs_to_halt():
    app = make_app("3,0,3,1,1,0,1,2,4,2,99", inputs=[5, 6])

    async def scenario(app, pilot):
        await run_to_end(app, pilot)
        assert app.runner.phase == "halted"
        assert app.runner.output_lines == ["11"]

    drive(app, scenario)
