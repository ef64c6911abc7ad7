"""
Unit Tests for the Render Pipeline
==================================

Job orchestration, single-flight admission, and release of the gate and
surface on every exit path.
"""

import asyncio
from unittest.mock import patch

import pytest
from starlette.concurrency import iterate_in_threadpool

from cardshot.core.errors import (
    AlreadyBusy,
    PackagingFailed,
    RenderEngineUnavailable,
    RenderFailed,
)
from cardshot.models.schemas import (
    CardSpec,
    CardVariant,
    GateState,
    OutputMode,
    RenderJob,
    TwoCardRenderRequest,
)

from tests.utils.assertions import archive_names, assert_png_size, read_archive


async def collect(outcome) -> bytes:
    return b"".join([chunk async for chunk in outcome.iter_archive()])


class TestExecute:
    """RenderPipeline.execute."""

    @pytest.mark.asyncio
    async def test_single_png_job_releases_before_return(self, pipeline, fake_playwright, chips_card):
        job = RenderJob(specs=[chips_card], output_mode=OutputMode.SINGLE_PNG)

        outcome = await pipeline.execute(job)

        assert not outcome.open
        assert outcome.image.name == "card-1.png"
        assert_png_size(outcome.image.png_data, (2160, 2700))
        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released

    @pytest.mark.asyncio
    async def test_zip_job_holds_scope_until_streamed(self, pipeline, fake_playwright):
        outcome = await pipeline.execute(TwoCardRenderRequest(title="Hi").to_job())

        assert outcome.open
        assert pipeline.gate.busy
        assert not fake_playwright.all_released

        data = await collect(outcome)

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released
        assert archive_names(data) == ["card-1.png", "card-2.png"]
        for png in read_archive(data).values():
            assert_png_size(png, (2160, 2700))

    @pytest.mark.asyncio
    async def test_archive_is_deflated_off_the_event_loop(self, pipeline):
        outcome = await pipeline.execute(TwoCardRenderRequest().to_job())

        with patch(
            "cardshot.core.pipeline.iterate_in_threadpool", wraps=iterate_in_threadpool
        ) as threadpool:
            data = await collect(outcome)

        threadpool.assert_called_once()
        assert archive_names(data) == ["card-1.png", "card-2.png"]

    @pytest.mark.asyncio
    async def test_one_surface_for_all_cards(self, pipeline, fake_playwright):
        outcome = await pipeline.execute(TwoCardRenderRequest().to_job())
        await outcome.aclose()

        assert fake_playwright.launch_count == 1
        assert len(fake_playwright.rendered) == 2

    @pytest.mark.asyncio
    async def test_cards_use_variant_layouts_and_defaults(self, pipeline, fake_playwright):
        outcome = await pipeline.execute(TwoCardRenderRequest(title="Hi").to_job())
        await outcome.aclose()

        first, second = fake_playwright.rendered
        assert "card-v1" in first and "--bg: #111827;" in first and "--accent: #a855f7;" in first
        assert "card-v2" in second and "--bg: #0b1220;" in second and "--accent: #22c55e;" in second

    @pytest.mark.asyncio
    async def test_aclose_is_idempotent(self, pipeline):
        outcome = await pipeline.execute(TwoCardRenderRequest().to_job())

        await outcome.aclose()
        await outcome.aclose()

        assert pipeline.gate.state is GateState.IDLE


class TestSingleFlight:
    """Overlapping jobs are rejected, not queued."""

    @pytest.mark.asyncio
    async def test_overlapping_job_rejected_then_next_admitted(self, pipeline, fake_playwright, chips_card):
        job = RenderJob(specs=[chips_card], output_mode=OutputMode.SINGLE_PNG)
        fake_playwright.capture_gate = asyncio.Event()

        first = asyncio.create_task(pipeline.execute(job))
        await fake_playwright.capture_started.wait()

        with pytest.raises(AlreadyBusy):
            await pipeline.execute(job)
        with pytest.raises(AlreadyBusy):
            await pipeline.render_html("<p>x</p>")
        with pytest.raises(AlreadyBusy):
            await pipeline.inspect()
        # Rejected jobs never launch a browser.
        assert fake_playwright.launch_count == 1

        fake_playwright.capture_gate.set()
        await first

        outcome = await pipeline.execute(job)
        assert outcome.image.name == "card-1.png"
        assert fake_playwright.launch_count == 2


class TestReleaseOnFailure:
    """Gate returns to idle and surfaces are released after injected failures."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "step, error",
        [
            ("launch", RenderEngineUnavailable),
            ("new_page", RenderEngineUnavailable),
            ("set_content", RenderFailed),
            ("screenshot", RenderFailed),
        ],
    )
    async def test_failure_releases_everything(self, pipeline, fake_playwright, step, error):
        fake_playwright.fail_on.add(step)

        with pytest.raises(error):
            await pipeline.execute(TwoCardRenderRequest().to_job())

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released

        fake_playwright.fail_on.clear()
        outcome = await pipeline.execute(TwoCardRenderRequest().to_job())
        await outcome.aclose()

    @pytest.mark.asyncio
    async def test_stalled_engine_cannot_wedge_gate(self, pipeline, fake_playwright, test_settings):
        test_settings.navigation_timeout = 50
        fake_playwright.fail_on.add("hang_fonts")

        with pytest.raises(RenderFailed):
            await asyncio.wait_for(pipeline.execute(TwoCardRenderRequest().to_job()), timeout=5)

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released

    @pytest.mark.asyncio
    async def test_hung_teardown_cannot_wedge_gate(self, pipeline, fake_playwright, test_settings, chips_card):
        test_settings.launch_timeout = 0.05
        fake_playwright.fail_on.add("hang_close")
        job = RenderJob(specs=[chips_card], output_mode=OutputMode.SINGLE_PNG)

        outcome = await asyncio.wait_for(pipeline.execute(job), timeout=5)

        assert outcome.image.name == "card-1.png"
        assert pipeline.gate.state is GateState.IDLE

    @pytest.mark.asyncio
    async def test_template_failure_releases_everything(self, pipeline, fake_playwright):
        with patch(
            "cardshot.core.pipeline.build_markup", side_effect=RenderFailed("Template rendering failed")
        ):
            with pytest.raises(RenderFailed):
                await pipeline.execute(TwoCardRenderRequest().to_job())

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released

    @pytest.mark.asyncio
    async def test_packaging_failure_releases_everything(self, pipeline, fake_playwright):
        outcome = await pipeline.execute(TwoCardRenderRequest().to_job())

        with patch(
            "cardshot.core.pipeline.stream_archive", side_effect=PackagingFailed("encoder broke")
        ):
            with pytest.raises(PackagingFailed):
                await collect(outcome)

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released
        assert pipeline.gate.try_admit()

    @pytest.mark.asyncio
    async def test_render_html_failure_releases(self, pipeline, fake_playwright):
        fake_playwright.fail_on.add("screenshot")

        with pytest.raises(RenderFailed):
            await pipeline.render_html("<p>x</p>")

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released

    @pytest.mark.asyncio
    async def test_inspect_failure_releases(self, pipeline, fake_playwright):
        fake_playwright.fail_on.add("goto")

        with pytest.raises(RenderFailed):
            await pipeline.inspect()

        assert pipeline.gate.state is GateState.IDLE
        assert fake_playwright.all_released


class TestOtherJobs:

    @pytest.mark.asyncio
    async def test_render_html(self, pipeline, fake_playwright):
        image = await pipeline.render_html("<h1>raw</h1>")

        assert image.name == "card.png"
        assert (image.width, image.height) == (2160, 2700)
        assert fake_playwright.rendered == ["<h1>raw</h1>"]

    @pytest.mark.asyncio
    async def test_inspect_uses_configured_url(self, pipeline, fake_playwright, test_settings):
        summary = await pipeline.inspect()

        assert summary.title == "Railway"
        assert fake_playwright.last_page.url == test_settings.inspect_url
        assert fake_playwright.browsers[0].contexts[0].viewport == {"width": 1280, "height": 720}


class TestRenderJobModel:

    def test_single_png_requires_one_card(self):
        with pytest.raises(ValueError):
            RenderJob(
                specs=[CardSpec(variant=CardVariant.CHIPS), CardSpec(variant=CardVariant.BULLETS)],
                output_mode=OutputMode.SINGLE_PNG,
            )

    def test_at_most_two_cards(self):
        with pytest.raises(ValueError):
            RenderJob(specs=[CardSpec()] * 3)
