"""
Client for an external chess engine speaking (a subset of) the UCI protocol over its standard input/output.

Commands are single lines written to the engine's stdin. The engine answers with lines on its stdout.
A reader thread moves those lines onto a queue, so waiting for a reply can be done with a bounded poll.

    client = EngineClient(settings)        # launches the process, "uci" ... "uciok"
    client.start_game()                    # "ucinewgame", "position startpos"
    budget = client.start_calculation()    # "go depth 9 movetime 7500"
    move = client.wait_for_best_move(budget)
    client.close()                         # "stop", "quit"
"""

import logging
import queue
import subprocess
import threading
from types import TracebackType
from typing import Optional, Self

from src.chess.position import Position
from src.core.config import EngineSettings
from src.core.exceptions import (
    EngineError,
    EngineLaunchError,
    EnginePipeError,
    EngineTimeoutError,
)
from src.core.shared_types import Difficulty
from src.engine.difficulty import SEARCH_LIMITS, go_command

logger = logging.getLogger(__name__)

# Fruit family engines "play" this move to resign (not portable UCI)
RESIGNATION_MOVE = "a1a1"


class EngineClient:
    """Owns the engine subprocess and its pipes. Not meant to be shared between threads."""

    def __init__(self, settings: EngineSettings) -> None:
        self._settings = settings
        self._difficulty = settings.difficulty
        self._started = False
        self._calculating = False
        self._best_move = ""
        # None marks the end of the engine's output
        self._replies: queue.Queue[Optional[str]] = queue.Queue()

        self._process = self._launch()
        self._reader = threading.Thread(
            target=self._pump_replies, name="engine-reader", daemon=True
        )
        self._reader.start()

        try:
            self._write_command("uci")
            self._read_replies("uciok")
        except EngineError as e:
            self._terminate()
            raise EngineLaunchError(f"engine did not complete the handshake: {e}") from e

        if settings.debug:
            self._write_command("debug on")
        if settings.openings_book:
            self.set_openings_book(settings.openings_book)

    # --- CONTEXT MANAGER ---
    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc: Optional[BaseException],
        traceback: Optional[TracebackType],
    ) -> None:
        self.close()

    # --- OPTIONS ---
    @property
    def difficulty(self) -> Difficulty:
        return self._difficulty

    def set_difficulty(self, difficulty: Difficulty) -> None:
        self._difficulty = difficulty

    def set_openings_book(self, book_path: str) -> None:
        self._write_command("setoption name OwnBook value true")
        # for Fruit family (not portable UCI)
        self._write_command(f"setoption name BookFile value {book_path}")

    def clear_openings_book(self) -> None:
        self._write_command("setoption name OwnBook value false")

    # --- GAME ---
    def start_game(self, initial: Optional[Position] = None) -> None:
        self._started = True
        self.wait_until_ready()
        self._write_command("ucinewgame")
        if initial is not None:
            self.set_position(initial)
        else:
            self._write_command("position startpos")

    def set_position(self, position: Position) -> None:
        """Before a game has been started, this starts one from the given position."""
        if not self._started:
            self.start_game(position)
            return
        self._write_command(f"position fen {position.to_fen()}")

    # --- CALCULATION ---
    @property
    def is_calculating(self) -> bool:
        return self._calculating

    def start_calculation(self) -> int:
        """Returns the time (in milliseconds) the engine was given to think"""
        limits = SEARCH_LIMITS[self._difficulty]
        self.wait_until_ready()
        self._write_command(go_command(limits))
        self._calculating = True
        return limits.movetime_ms

    def stop_calculation(self) -> None:
        """The best move shows up while reading the next replies (e.g. in the next wait_until_ready())"""
        self.wait_until_ready()
        self._write_command("stop")
        self._calculating = False

    def wait_for_best_move(self, budget_ms: int) -> str:
        """Read replies until the engine reports its best move, allowing for the calculation budget on top of the usual reply timeout."""
        extra_polls = int(budget_ms / 1000 / self._settings.reply_poll_interval)
        self._read_replies("bestmove", self._settings.reply_poll_limit + extra_polls)
        return self._best_move

    def wait_until_ready(self) -> None:
        self._write_command("isready")
        self._read_replies("readyok")

    def peek_best_move(self) -> str:
        return self._best_move

    def take_best_move(self) -> str:
        best_move, self._best_move = self._best_move, ""
        return best_move

    def has_resigned(self) -> bool:
        return self._best_move == RESIGNATION_MOVE

    # --- SHUTDOWN ---
    def close(self) -> None:
        """Ask the engine to quit, and make sure it does"""
        if self._process.poll() is None:
            for command in ("stop", "quit"):
                try:
                    self._write_command(command)
                except EnginePipeError:
                    logger.debug("Could not send %r to engine while closing", command)
                    break
        self._terminate()

    def _terminate(self) -> None:
        if self._process.stdin is not None and not self._process.stdin.closed:
            try:
                self._process.stdin.close()
            except OSError:
                logger.debug("Pipe to engine was already broken")
        try:
            self._process.wait(timeout=self._settings.shutdown_timeout)
        except subprocess.TimeoutExpired:
            logger.warning("Engine did not quit in time, killing it")
            self._process.kill()
            self._process.wait()
        # the process is gone, so the reader sees the end of its output
        self._reader.join(timeout=self._settings.shutdown_timeout)
        if self._process.stdout is not None:
            self._process.stdout.close()
        self._calculating = False

    # -- PRIVATE HELPERS ---
    def _launch(self) -> subprocess.Popen[str]:
        program_path = self._settings.program_path
        if not program_path:
            raise EngineLaunchError("could not launch chess engine: no program configured")
        try:
            process = subprocess.Popen(
                [program_path, *self._settings.arguments],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                bufsize=1,
            )
        except OSError as e:
            raise EngineLaunchError(f"could not launch chess engine {program_path!r}: {e}") from e

        logger.info("The engine has been loaded from %r", program_path)
        return process

    def _pump_replies(self) -> None:
        """Runs in the reader thread until the engine closes its output"""
        assert self._process.stdout is not None
        try:
            for line in self._process.stdout:
                self._replies.put(line)
        except (OSError, ValueError):
            logger.debug("Pipe from engine was closed")
        finally:
            self._replies.put(None)

    def _write_command(self, command: str) -> None:
        stdin = self._process.stdin
        if stdin is None or stdin.closed:
            raise EnginePipeError("no pipe to engine")
        try:
            stdin.write(command + "\n")
            stdin.flush()
        except (OSError, ValueError) as e:
            raise EnginePipeError(f"could not send {command!r} to engine: {e}") from e
        if command != "isready":
            logger.debug("engine <- %s", command)

    def _read_replies(self, desired_reply: str, poll_limit: Optional[int] = None) -> None:
        """
        Read reply lines until one starts with `desired_reply`
        ----

        * blank lines are skipped, a trailing carriage return is removed
        * "id name ..." / "id author ..." are logged
        * "bestmove <move> [ponder <move>]" stores the best move (the ponder move is ignored)

        Every poll that finds no reply costs one attempt. Running out of attempts is a timeout.
        """
        if poll_limit is None:
            poll_limit = self._settings.reply_poll_limit
        empty_polls = 0
        last_reply = ""

        while last_reply != desired_reply:
            try:
                line = self._replies.get(timeout=self._settings.reply_poll_interval)
            except queue.Empty:
                empty_polls += 1
                if empty_polls >= poll_limit:
                    raise EngineTimeoutError(
                        f"engine took too long to reply with {desired_reply}"
                    )
                continue

            if line is None:
                # keep the marker around for whoever reads next
                self._replies.put(None)
                raise EnginePipeError(f"engine closed its output while waiting for {desired_reply}")

            reply = line.rstrip("\n").removesuffix("\r")
            words = reply.split()
            if not words:
                continue
            if reply != "readyok":
                logger.debug("engine -> %s", reply)

            last_reply = words[0]
            if last_reply == "id" and len(words) > 2:
                self._log_identification(words[1], " ".join(words[2:]))
            elif last_reply == "bestmove":
                self._best_move = words[1] if len(words) > 1 else ""
                self._calculating = False

    def _log_identification(self, field: str, value: str) -> None:
        if field == "name":
            logger.info("The engine is %s", value)
        elif field == "author":
            logger.info("The engine was written by %s", value)
