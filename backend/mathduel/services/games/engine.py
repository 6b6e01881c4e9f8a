"""Room lifecycle: waiting -> countdown -> playing -> finished.

All mutations of one room happen while holding that room's lock. Timer
callbacks only capture the room id; they re-resolve the room under its lock
and bail out if it is gone, if their handle was cancelled or replaced, or if
the room has moved on to another status.
"""

import logging
from functools import partial
from typing import Callable, Optional

from mathduel.models import (
    ADVANCE_TIMER,
    CLEANUP_TIMER,
    CLOCK_TIMER,
    COUNTDOWN_TIMER,
    Question,
    Room,
    RoomStatus,
)
from mathduel.services.leaderboard import Leaderboard
from .commands import (
    CreateRoom,
    Disconnect,
    FetchLeaderboard,
    JoinRoom,
    LeaveRoom,
    StartGame,
    SubmitAnswer,
)
from .outcomes import ErrorCode, Outcome
from .questions import generate_question
from .registry import RoomRegistry
from .scheduler import TimerHandle
from .scoring import coerce_answer, grade_answer, points_for_answer, settle
from .settings import GameSettings


class GameEngine:

    def __init__(self, registry: RoomRegistry, scheduler, transport,
                 settings: Optional[GameSettings] = None,
                 leaderboard: Optional[Leaderboard] = None,
                 logger: Optional[logging.Logger] = None,
                 question_factory: Callable[[int], Question] = generate_question):
        self.registry = registry
        self.scheduler = scheduler
        self.transport = transport
        self.settings = settings or GameSettings()
        self.leaderboard = leaderboard or Leaderboard()
        self.logger = logger or logging.getLogger(__name__)
        self.question_factory = question_factory
        self._sweep_handle: Optional[TimerHandle] = None
        self._handlers = {
            CreateRoom: self.create_room,
            JoinRoom: self.join_room,
            StartGame: self.start_game,
            SubmitAnswer: self.submit_answer,
            LeaveRoom: self.leave_room,
            Disconnect: self.disconnect,
            FetchLeaderboard: self.fetch_leaderboard,
        }

    def dispatch(self, command) -> Outcome:
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"unsupported command: {command!r}")
        return handler(command)

    def _broadcast(self, room: Room, event: str, payload: dict) -> None:
        self.transport.emit(event, payload, to=room.id)

    # ---- lobby ----

    def create_room(self, cmd: CreateRoom) -> Outcome:
        previous = self.registry.room_of(cmd.player_id)
        room = self.registry.create(cmd.player_id, cmd.player_name, cmd.bet_amount)
        if previous:
            self._remove_player(previous, cmd.player_id)
        with self.registry.lock(room.id) as live:
            if live is None:
                return Outcome.failure(ErrorCode.NOT_FOUND, 'Room not found')
            self.transport.enter(cmd.player_id, live.id)
            self.transport.emit('room-created', {
                'roomId': live.id,
                'playerName': cmd.player_name,
                'players': live.players_dict(),
            }, to=cmd.player_id)
            self.logger.info(f"[room-created] room={live.id} host={cmd.player_name!r}")
            return Outcome.success(live)

    def join_room(self, cmd: JoinRoom) -> Outcome:
        previous = self.registry.room_of(cmd.player_id)
        with self.registry.lock(cmd.room_id) as room:
            already_member = room is not None and room.find_player(cmd.player_id) is not None
            outcome = self.registry.join(cmd.room_id, cmd.player_id, cmd.player_name, cmd.bet_amount)
            if not outcome.ok:
                self.logger.info(
                    f"[join-rejected] room={cmd.room_id} player={cmd.player_name!r} reason={outcome.error.value}"
                )
                return outcome
            self.transport.enter(cmd.player_id, room.id)
            if not already_member:
                self._broadcast(room, 'player-joined', {
                    'players': room.players_dict(),
                    'newPlayer': cmd.player_name,
                })
                self.logger.info(f"[player-joined] room={room.id} player={cmd.player_name!r} count={len(room.players)}")
            self.transport.emit('room-joined', {
                'roomId': room.id,
                'players': room.players_dict(),
            }, to=cmd.player_id)
        if previous and previous != cmd.room_id:
            self._remove_player(previous, cmd.player_id)
        return outcome

    def leave_room(self, cmd: LeaveRoom) -> Outcome:
        return self._remove_player(cmd.room_id, cmd.player_id)

    def disconnect(self, cmd: Disconnect) -> Outcome:
        room_id = self.registry.room_of(cmd.player_id)
        if room_id is None:
            return Outcome.skip('Not in a room')
        return self._remove_player(room_id, cmd.player_id)

    def _remove_player(self, room_id: str, player_id: str) -> Outcome:
        with self.registry.lock(room_id):
            player, room = self.registry.remove_player(room_id, player_id)
            if player is None:
                return Outcome.skip('Not a member of this room')
            self.transport.leave(player_id, room_id)
            if room is None:
                self.logger.info(f"[room-deleted] room={room_id} reason=empty")
                return Outcome.success(None)
            self._broadcast(room, 'player-left', {
                'players': room.players_dict(),
                'leftPlayer': player.name,
            })
            self.logger.info(f"[player-left] room={room_id} player={player.name!r} count={len(room.players)}")
            return Outcome.success(room)

    # ---- waiting -> countdown -> playing ----

    def start_game(self, cmd: StartGame) -> Outcome:
        with self.registry.lock(cmd.room_id) as room:
            if room is None:
                return Outcome.failure(ErrorCode.NOT_FOUND, 'Room not found')
            player = room.find_player(cmd.player_id)
            if player is None:
                return Outcome.failure(ErrorCode.PRECONDITION_FAILED, 'You are not in this room')
            if not player.is_host:
                return Outcome.failure(ErrorCode.PRECONDITION_FAILED, 'Only the host can start the game')
            if room.status != RoomStatus.WAITING:
                return Outcome.failure(ErrorCode.PRECONDITION_FAILED, 'Game has already started or is finished')
            if len(room.players) < self.settings.min_players:
                return Outcome.failure(
                    ErrorCode.PRECONDITION_FAILED,
                    f"At least {self.settings.min_players} players are required to start",
                )

            room.status = RoomStatus.COUNTDOWN
            room.countdown = self.settings.countdown_sec
            self.logger.info(f"[game-starting] room={room.id} countdown={room.countdown}s")
            if room.countdown <= 0:
                self._broadcast(room, 'game-starting', {'countdown': 0})
                self._begin_playing(room)
                return Outcome.success(room)
            self._broadcast(room, 'game-starting', {'countdown': room.countdown})
            room.timers[COUNTDOWN_TIMER] = self.scheduler.call_every(
                1, partial(self._countdown_tick, room.id), name=f"countdown:{room.id}"
            )
            return Outcome.success(room)

    def _timer_is_live(self, room: Optional[Room], kind: str, handle: TimerHandle, status: str) -> bool:
        if room is None or handle.cancelled:
            return False
        return room.timers.get(kind) is handle and room.status == status

    def _countdown_tick(self, room_id: str, handle: TimerHandle):
        with self.registry.lock(room_id) as room:
            if not self._timer_is_live(room, COUNTDOWN_TIMER, handle, RoomStatus.COUNTDOWN):
                return False
            room.countdown = max(0, room.countdown - 1)
            self._broadcast(room, 'game-starting', {'countdown': room.countdown})
            if room.countdown > 0:
                return True
            room.cancel_timers(COUNTDOWN_TIMER)
            self._begin_playing(room)
            return False

    def _begin_playing(self, room: Room) -> None:
        room.status = RoomStatus.PLAYING
        room.time_remaining = self.settings.game_duration_sec
        room.question_number = 1
        room.awaiting_next_question = False
        room.current_question = self.question_factory(room.question_number)
        payload = room.current_question.public_dict()
        payload.update({'timer': room.time_remaining, 'questionNumber': room.question_number})
        self._broadcast(room, 'game-started', payload)
        room.timers[CLOCK_TIMER] = self.scheduler.call_every(
            1, partial(self._clock_tick, room.id), name=f"clock:{room.id}"
        )
        self.logger.info(f"[game-started] room={room.id} duration={room.time_remaining}s players={len(room.players)}")

    def _clock_tick(self, room_id: str, handle: TimerHandle):
        with self.registry.lock(room_id) as room:
            if not self._timer_is_live(room, CLOCK_TIMER, handle, RoomStatus.PLAYING):
                return False
            room.time_remaining = max(0, room.time_remaining - 1)
            self._broadcast(room, 'timer-update', {'timeLeft': room.time_remaining})
            if room.time_remaining > 0:
                return True
            self._finish_game(room)
            return False

    # ---- answers and question pacing ----

    def submit_answer(self, cmd: SubmitAnswer) -> Outcome:
        with self.registry.lock(cmd.room_id) as room:
            if room is None or room.status != RoomStatus.PLAYING:
                return Outcome.skip('No game in progress')
            if room.awaiting_next_question or room.current_question is None:
                return Outcome.skip('Waiting for the next question')
            player = room.find_player(cmd.player_id)
            if player is None:
                return Outcome.skip('Not a member of this room')

            question = room.current_question
            is_correct = grade_answer(question, cmd.answer)
            points = points_for_answer(is_correct, cmd.time_taken_ms, self.settings.fast_answer_ms)
            player.score += points
            result = {
                'isCorrect': is_correct,
                'correctAnswer': question.correct_answer,
                'playerAnswer': coerce_answer(cmd.answer),
                'newScore': player.score,
                'pointsAwarded': points,
                'questionNumber': room.question_number,
            }
            self.transport.emit('answer-result', result, to=player.id)
            self._broadcast(room, 'scoreboard', {'players': room.players_dict()})

            # The answered question is closed until the advance installs the next one
            room.awaiting_next_question = True
            room.current_question = None
            room.timers[ADVANCE_TIMER] = self.scheduler.call_later(
                self.settings.next_question_delay_sec,
                partial(self._advance_question, room.id),
                name=f"advance:{room.id}",
            )
            return Outcome.success(room, payload=result)

    def _advance_question(self, room_id: str, handle: TimerHandle):
        with self.registry.lock(room_id) as room:
            if not self._timer_is_live(room, ADVANCE_TIMER, handle, RoomStatus.PLAYING):
                return False
            room.timers.pop(ADVANCE_TIMER, None)
            room.question_number += 1
            room.current_question = self.question_factory(room.question_number)
            payload = room.current_question.public_dict()
            payload['questionNumber'] = room.question_number
            self._broadcast(room, 'new-question', payload)
            room.awaiting_next_question = False
            return False

    # ---- playing -> finished ----

    def _finish_game(self, room: Room) -> None:
        room.cancel_timers(CLOCK_TIMER, ADVANCE_TIMER, COUNTDOWN_TIMER)
        room.status = RoomStatus.FINISHED
        room.current_question = None
        room.awaiting_next_question = False
        room.time_remaining = 0

        settlement = settle(room.players)
        self._broadcast(room, 'game-ended', {
            'results': settlement.to_dict(),
            'players': room.players_dict(),
        })
        self.leaderboard.record(room.players)
        room.timers[CLEANUP_TIMER] = self.scheduler.call_later(
            self.settings.results_grace_sec,
            partial(self._expire_room, room.id),
            name=f"cleanup:{room.id}",
        )
        self.logger.info(
            f"[game-ended] room={room.id} type={settlement.result_type} "
            f"winners={[p.name for p in settlement.winners]} prize={settlement.prize_per_winner}"
        )

    def _expire_room(self, room_id: str, handle: TimerHandle):
        with self.registry.lock(room_id) as room:
            if not self._timer_is_live(room, CLEANUP_TIMER, handle, RoomStatus.FINISHED):
                return False
            self.registry.remove(room_id)
            self.logger.info(f"[room-deleted] room={room_id} reason=results-grace-expired")
            return False

    # ---- leaderboard and housekeeping ----

    def fetch_leaderboard(self, cmd: FetchLeaderboard) -> Outcome:
        entries = self.leaderboard.top(cmd.limit)
        self.transport.emit('leaderboard', {'entries': entries}, to=cmd.player_id)
        return Outcome.success(payload=entries)

    def sweep_stale_rooms(self, handle: Optional[TimerHandle] = None):
        removed = self.registry.reclaim_stale(self.settings.stale_room_max_age_sec)
        if removed:
            self.logger.info(f"[room-sweep] removed={removed}")
        return True

    def start_housekeeping(self) -> TimerHandle:
        if self._sweep_handle is None or self._sweep_handle.cancelled:
            self._sweep_handle = self.scheduler.call_every(
                self.settings.stale_sweep_interval_sec, self.sweep_stale_rooms, name='room-sweep'
            )
        return self._sweep_handle

    def stop_housekeeping(self) -> None:
        if self._sweep_handle is not None:
            self._sweep_handle.cancel()
            self._sweep_handle = None
