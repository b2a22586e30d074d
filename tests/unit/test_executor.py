"""Unit tests for SubprocessExecutor."""

import asyncio
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from provisioner.models.status import FailureKind
from provisioner.services.executor import SubprocessExecutor


def _mock_process(stdout=b"", stderr=b"", returncode=0):
    process = MagicMock()
    process.communicate = AsyncMock(return_value=(stdout, stderr))
    process.returncode = returncode
    process.wait = AsyncMock(return_value=returncode)
    process.pid = 4242
    return process


@pytest.mark.unit
class TestSubprocessExecutor:
    """Test SubprocessExecutor in isolation."""

    @pytest.fixture
    def executor(self):
        return SubprocessExecutor()

    @pytest.mark.asyncio
    async def test_exit_zero_succeeds(self, executor):
        # Arrange
        process = _mock_process(stdout=b"uploaded 14 bytes\n")

        with patch("asyncio.create_subprocess_exec", return_value=process) as spawn:
            # Act
            outcome = await executor.execute(
                "fwi-serial", ["-s", "build_a_badge.txt", "-fn", "/build_a_badge.txt"], 30.0
            )

            # Assert
            assert outcome.succeeded
            assert outcome.exit_status == 0
            assert outcome.failure_kind is None
            assert outcome.stdout == "uploaded 14 bytes\n"
            args = spawn.call_args[0]
            assert args == ("fwi-serial", "-s", "build_a_badge.txt", "-fn", "/build_a_badge.txt")

    @pytest.mark.asyncio
    async def test_non_zero_exit(self, executor):
        process = _mock_process(stderr=b"device not found\n", returncode=1)

        with patch("asyncio.create_subprocess_exec", return_value=process):
            outcome = await executor.execute("fwi-serial", ["-w", "build_a_badge.wasm"], 30.0)

            assert not outcome.succeeded
            assert outcome.failure_kind is FailureKind.NON_ZERO_EXIT
            assert outcome.exit_status == 1
            assert outcome.stderr == "device not found\n"

    @pytest.mark.asyncio
    async def test_output_kept_on_failure(self, executor):
        """stdout is captured irrespective of success."""
        process = _mock_process(stdout=b"opening port\n", stderr=b"write failed", returncode=3)

        with patch("asyncio.create_subprocess_exec", return_value=process):
            outcome = await executor.execute("fwi-serial", [], 30.0)

            assert outcome.stdout == "opening port\n"
            assert outcome.stderr == "write failed"

    @pytest.mark.asyncio
    async def test_invalid_utf8_is_replaced(self, executor):
        process = _mock_process(stdout=b"bad \xff byte", returncode=0)

        with patch("asyncio.create_subprocess_exec", return_value=process):
            outcome = await executor.execute("fwi-serial", [], 30.0)

            assert outcome.stdout == "bad � byte"

    @pytest.mark.asyncio
    async def test_spawn_error(self, executor):
        with patch(
            "asyncio.create_subprocess_exec",
            side_effect=FileNotFoundError(2, "No such file or directory"),
        ):
            outcome = await executor.execute("fwi-serial", ["-w", "x.wasm"], 30.0)

            assert not outcome.succeeded
            assert outcome.failure_kind is FailureKind.SPAWN_ERROR
            assert outcome.exit_status is None
            assert "No such file or directory" in outcome.stderr

    @pytest.mark.asyncio
    async def test_permission_error_is_spawn_error(self, executor):
        with patch("asyncio.create_subprocess_exec", side_effect=PermissionError(13, "Permission denied")):
            outcome = await executor.execute("./fwi-serial", [], 30.0)

            assert outcome.failure_kind is FailureKind.SPAWN_ERROR

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self, executor):
        # Arrange
        process = _mock_process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError())

        with patch("asyncio.create_subprocess_exec", return_value=process):
            # Act
            outcome = await executor.execute("fwi-serial", [], 0.5)

            # Assert
            assert not outcome.succeeded
            assert outcome.failure_kind is FailureKind.TIMEOUT
            assert outcome.exit_status is None
            process.kill.assert_called_once()
            process.wait.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_timeout_when_process_already_gone(self, executor):
        process = _mock_process()
        process.communicate = AsyncMock(side_effect=asyncio.TimeoutError())
        process.kill = MagicMock(side_effect=ProcessLookupError())

        with patch("asyncio.create_subprocess_exec", return_value=process):
            outcome = await executor.execute("fwi-serial", [], 0.5)

            assert outcome.failure_kind is FailureKind.TIMEOUT
