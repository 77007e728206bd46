"""Tests for WebSocket game handler."""

import random
from unittest.mock import AsyncMock, MagicMock

import pytest

from hookwhist.api.game_handler import GAME_RESET_CLOSE_CODE, GameHandler
from hookwhist.api.responses import Command
from hookwhist.models.card import Card
from hookwhist.models.enums import GamePhase, RoundPhase, Suit
from hookwhist.models.errors import ErrorCode
from hookwhist.models.game import Game
from hookwhist.models.player import Player

pytestmark = pytest.mark.anyio


@pytest.fixture
def mock_manager():
    """Create a mock connection manager."""
    manager = MagicMock()
    manager.broadcast_to_game = AsyncMock()
    manager.send_personal_message = AsyncMock()
    manager.close_game_connections = AsyncMock()
    return manager


@pytest.fixture
def game_handler(mock_manager):
    """Create a game handler with mock manager."""
    return GameHandler(mock_manager)


@pytest.fixture
def game(mock_manager):
    """A lobby with four players, registered with the mock manager."""
    game = Game(id="test-game", rng=random.Random(3))
    for i in range(4):
        game.add_player(Player(id=f"player-{i}", username=f"Player {i}"))
    mock_manager.get_game.return_value = game
    return game


def broadcasts(manager, command):
    calls = manager.broadcast_to_game.call_args_list
    return [c.args[0] for c in calls if c.args[0].command == command]


def personal(manager, command):
    """(receiver, message) pairs sent privately with the given command."""
    return [
        (c.args[2], c.args[0])
        for c in manager.send_personal_message.call_args_list
        if c.args[0].command == command
    ]


def set_hands(game, cards):
    """Give the players one card each, following the current turn order."""
    current_round = game.current_round
    current_round.trump_card = None
    for player_id, card in zip(current_round.turn_order, cards, strict=True):
        game.get_player(player_id).hand = [card]


async def declare_everyone(game_handler, game, value=0):
    current_round = game.current_round
    while current_round.phase == RoundPhase.DECLARING:
        declared = value
        if declared == current_round.forbidden_declaration():
            declared = value + 1
        await game_handler.handle_command(
            game, current_round.turn, "DECLARE", {"declaration": declared}
        )


class TestJoin:
    """Tests for announcing joins."""

    async def test_roster_broadcast(self, game_handler, mock_manager):
        game = Game(id="test-game")
        player = Player(id="player-0", username="Ann")
        game.add_player(player)

        await game_handler.handle_join(game, player)

        roster = broadcasts(mock_manager, Command.ROSTER)
        assert len(roster) == 1
        assert roster[0].content["players"][0]["username"] == "Ann"
        assert roster[0].content["players"][0]["hand"] is None
        assert personal(mock_manager, Command.CAN_START) == []

    async def test_can_start_sent_to_first_player(self, game_handler, game, mock_manager):
        await game_handler.handle_join(game, game.players[-1])

        can_start = personal(mock_manager, Command.CAN_START)
        assert [receiver for receiver, _ in can_start] == ["player-0"]


class TestStartGame:
    """Tests for START_GAME command."""

    async def test_start_game_success(self, game_handler, game, mock_manager):
        """Starting deals round 1 and asks the first player to declare."""
        await game_handler.handle_command(game, "player-2", "START_GAME", {})

        assert game.phase == GamePhase.IN_PROGRESS
        assert game.current_round_number == 1

        new_round = personal(mock_manager, Command.NEW_ROUND)
        assert len(new_round) == 4
        for receiver, message in new_round:
            assert message.content["round"] == 1
            for info in message.content["players"]:
                if info["id"] == receiver:
                    assert len(info["hand"]) == 1
                else:
                    assert info["hand"] is None
                    assert info["hand_size"] == 1

        assert broadcasts(mock_manager, Command.STATUS)
        declare_turn = personal(mock_manager, Command.DECLARE_TURN)
        assert [receiver for receiver, _ in declare_turn] == [game.current_round.turn]

    async def test_start_game_not_enough_players(self, game_handler, mock_manager):
        game = Game(id="test-game")
        game.add_player(Player(id="player-0", username="Player 0"))

        await game_handler.handle_command(game, "player-0", "START_GAME", {})

        [(receiver, error)] = personal(mock_manager, Command.REPORT_ERROR)
        assert receiver == "player-0"
        assert error.content["code"] == ErrorCode.NOT_ENOUGH_PLAYERS.value
        assert game.phase == GamePhase.LOBBY

    async def test_start_game_already_started_is_ignored(self, game_handler, game, mock_manager):
        game.start()
        round_before = game.current_round

        await game_handler.handle_command(game, "player-0", "START_GAME", {})

        assert game.current_round is round_before
        mock_manager.send_personal_message.assert_not_called()
        mock_manager.broadcast_to_game.assert_not_called()


class TestDeclare:
    """Tests for DECLARE command."""

    async def test_declare_success(self, game_handler, game, mock_manager):
        game.start()
        first = game.current_round.turn

        await game_handler.handle_command(game, first, "DECLARE", {"declaration": 1})

        declared = broadcasts(mock_manager, Command.DECLARED)
        assert declared[0].content == {"player_id": first, "declaration": 1}
        receiver, message = personal(mock_manager, Command.DECLARE_TURN)[-1]
        assert receiver == game.current_round.turn
        assert "forbidden_number" not in message.content

    async def test_out_of_turn_is_ignored(self, game_handler, game, mock_manager):
        game.start()
        not_on_turn = game.current_round.turn_order[1]

        await game_handler.handle_command(game, not_on_turn, "DECLARE", {"declaration": 0})

        assert game.current_round.declarations == {}
        mock_manager.send_personal_message.assert_not_called()
        mock_manager.broadcast_to_game.assert_not_called()

    async def test_invalid_declaration_reported(self, game_handler, game, mock_manager):
        game.start()
        first = game.current_round.turn

        await game_handler.handle_command(game, first, "DECLARE", {"declaration": 5})

        [(receiver, error)] = personal(mock_manager, Command.REPORT_ERROR)
        assert receiver == first
        assert error.content["code"] == ErrorCode.INVALID_DECLARATION.value

    async def test_last_bidder_told_forbidden_number(self, game_handler, game, mock_manager):
        game.start()
        current_round = game.current_round
        for value in (0, 0, 1):
            await game_handler.handle_command(
                game, current_round.turn, "DECLARE", {"declaration": value}
            )

        last = current_round.turn
        receiver, message = personal(mock_manager, Command.DECLARE_TURN)[-1]
        assert receiver == last
        assert message.content["forbidden_number"] == 0

        await game_handler.handle_command(game, last, "DECLARE", {"declaration": 0})

        [(receiver, error)] = personal(mock_manager, Command.REPORT_ERROR)
        assert receiver == last
        assert error.content["code"] == ErrorCode.FORBIDDEN_DECLARATION.value
        assert current_round.phase == RoundPhase.DECLARING

    async def test_all_declared_starts_play(self, game_handler, game, mock_manager):
        game.start()
        await declare_everyone(game_handler, game)

        all_declared = broadcasts(mock_manager, Command.ALL_DECLARED)
        assert len(all_declared) == 1
        assert len(all_declared[0].content["declarations"]) == 4
        [(receiver, message)] = personal(mock_manager, Command.PLAY_TURN)
        assert receiver == game.current_round.turn_order[0]
        assert message.content["lead_suit"] is None


class TestPlayCard:
    """Tests for PLAY_CARD command."""

    @pytest.fixture
    def playing_game(self, game, game_handler):
        game.start()
        set_hands(
            game,
            [
                Card(Suit.DIAMONDS, "7"),
                Card(Suit.DIAMONDS, "9"),
                Card(Suit.CLUBS, "A"),
                Card(Suit.DIAMONDS, "K"),
            ],
        )
        return game

    async def play(self, game_handler, game, player_id, suit, value):
        await game_handler.handle_command(
            game, player_id, "PLAY_CARD", {"card": {"suit": suit, "value": value}}
        )

    async def test_card_played_public_and_private(
        self, game_handler, playing_game, mock_manager
    ):
        await declare_everyone(game_handler, playing_game)
        leader = playing_game.current_round.turn
        mock_manager.reset_mock()

        await self.play(game_handler, playing_game, leader, "DIAMONDS", "7")

        public_call = next(
            c
            for c in mock_manager.broadcast_to_game.call_args_list
            if c.args[0].command == Command.CARD_PLAYED
        )
        assert public_call.args[2] == leader
        assert "hand" not in public_call.args[0].content
        assert public_call.args[0].content["card"] == {"suit": "DIAMONDS", "value": "7"}

        [(receiver, private)] = personal(mock_manager, Command.CARD_PLAYED)
        assert receiver == leader
        assert private.content["hand"] == []

        [(receiver, prompt)] = personal(mock_manager, Command.PLAY_TURN)
        assert receiver == playing_game.current_round.turn
        assert prompt.content["lead_suit"] == "DIAMONDS"

    async def test_malformed_card_reported(self, game_handler, playing_game, mock_manager):
        await declare_everyone(game_handler, playing_game)
        leader = playing_game.current_round.turn

        await game_handler.handle_command(
            playing_game, leader, "PLAY_CARD", {"card": {"suit": "CUPS", "value": "7"}}
        )

        [(receiver, error)] = personal(mock_manager, Command.REPORT_ERROR)
        assert receiver == leader
        assert error.content["code"] == ErrorCode.INVALID_CARD.value

    async def test_out_of_turn_ignored_before_card_is_parsed(
        self, game_handler, playing_game, mock_manager
    ):
        await declare_everyone(game_handler, playing_game)
        other = playing_game.current_round.turn_order[2]
        mock_manager.reset_mock()

        await game_handler.handle_command(playing_game, other, "PLAY_CARD", {"card": "junk"})

        mock_manager.send_personal_message.assert_not_called()

    async def test_play_during_declaring_ignored(self, game_handler, playing_game, mock_manager):
        leader = playing_game.current_round.turn

        await self.play(game_handler, playing_game, leader, "DIAMONDS", "7")

        assert personal(mock_manager, Command.REPORT_ERROR) == []
        assert playing_game.get_player(leader).hand == [Card(Suit.DIAMONDS, "7")]

    async def test_must_follow_suit(self, game_handler, game, mock_manager):
        game.start()
        order = game.current_round.turn_order
        game.current_round.trump_card = None
        game.get_player(order[0]).hand = [Card(Suit.HEARTS, "2")]
        game.get_player(order[1]).hand = [Card(Suit.HEARTS, "3"), Card(Suit.SPADES, "3")]
        game.get_player(order[2]).hand = [Card(Suit.HEARTS, "4")]
        game.get_player(order[3]).hand = [Card(Suit.HEARTS, "5")]
        await declare_everyone(game_handler, game)

        await self.play(game_handler, game, order[0], "HEARTS", "2")
        await self.play(game_handler, game, order[1], "SPADES", "3")

        [(receiver, error)] = personal(mock_manager, Command.REPORT_ERROR)
        assert receiver == order[1]
        assert error.content["code"] == ErrorCode.MUST_FOLLOW_SUIT.value
        assert game.current_round.turn == order[1]

    async def test_last_trick_scores_and_deals_next_round(
        self, game_handler, playing_game, mock_manager
    ):
        """7♦ lead, 9♦, A♣, K♦ without trump: the K♦ takes the trick."""
        order = list(playing_game.current_round.turn_order)
        await declare_everyone(game_handler, playing_game)
        declarations = dict(playing_game.current_round.declarations)

        for player_id, (suit, value) in zip(
            order, [("DIAMONDS", "7"), ("DIAMONDS", "9"), ("CLUBS", "A"), ("DIAMONDS", "K")]
        ):
            await self.play(game_handler, playing_game, player_id, suit, value)
        await game_handler.wait_for_pending()

        (trick_won,) = broadcasts(mock_manager, Command.TRICK_WON)
        assert trick_won.content["winner_id"] == order[3]
        assert len(trick_won.content["cards"]) == 4

        (round_over,) = broadcasts(mock_manager, Command.ROUND_OVER)
        assert round_over.content["round"] == 1
        for row in round_over.content["scores"]:
            won = 1 if row["player_id"] == order[3] else 0
            expected = 1 + declarations[row["player_id"]] if won == row["declared"] else 0
            assert row["tricks_won"] == won
            assert row["score_delta"] == expected
            assert row["total_score"] == expected

        assert playing_game.current_round_number == 2
        rounds = {m.content["round"] for _, m in personal(mock_manager, Command.NEW_ROUND)}
        assert rounds == {2}

    async def two_card_round_after_first_trick(self, game_handler, game):
        """Deal two cards each and play a hearts trick the first player wins."""
        game.start()
        current_round = game.current_round
        current_round.number = 2
        current_round.trump_card = None
        order = list(current_round.turn_order)
        hands = [
            [Card(Suit.HEARTS, "A"), Card(Suit.CLUBS, "2")],
            [Card(Suit.HEARTS, "K"), Card(Suit.CLUBS, "3")],
            [Card(Suit.HEARTS, "4"), Card(Suit.CLUBS, "4")],
            [Card(Suit.HEARTS, "Q"), Card(Suit.CLUBS, "5")],
        ]
        for player_id, hand in zip(order, hands, strict=True):
            game.get_player(player_id).hand = hand
        await declare_everyone(game_handler, game)
        for player_id, value in zip(order, ["A", "K", "4", "Q"], strict=True):
            await self.play(game_handler, game, player_id, "HEARTS", value)
        return order

    async def test_trick_winner_prompted_after_pause(self, game_handler, game, mock_manager):
        order = await self.two_card_round_after_first_trick(game_handler, game)
        assert game.current_round.turn == order[0]
        mock_manager.reset_mock()

        await game_handler.wait_for_pending()

        prompts = personal(mock_manager, Command.PLAY_TURN)
        assert [receiver for receiver, _ in prompts] == [order[0]]

    async def test_winner_leading_during_pause_not_prompted_again(
        self, game_handler, game, mock_manager
    ):
        order = await self.two_card_round_after_first_trick(game_handler, game)
        mock_manager.reset_mock()

        await self.play(game_handler, game, order[0], "CLUBS", "2")
        await game_handler.wait_for_pending()

        prompts = personal(mock_manager, Command.PLAY_TURN)
        assert [receiver for receiver, _ in prompts] == [order[1]]
        assert game.current_round.turn == order[1]


class TestDisconnect:
    """Tests for lost connections."""

    async def test_lobby_disconnect_frees_seat(self, game_handler, game, mock_manager):
        await game_handler.handle_disconnect(game, "player-1")

        assert game.get_player("player-1") is None
        roster = broadcasts(mock_manager, Command.ROSTER)
        assert [p["id"] for p in roster[-1].content["players"]] == [
            "player-0",
            "player-2",
            "player-3",
        ]
        mock_manager.reset_game.assert_not_called()

    async def test_new_first_player_offered_start(self, game_handler, game, mock_manager):
        game.add_player(Player(id="player-4", username="Player 4"))

        await game_handler.handle_disconnect(game, "player-0")

        can_start = personal(mock_manager, Command.CAN_START)
        assert [receiver for receiver, _ in can_start] == ["player-1"]

    async def test_no_start_offer_below_minimum(self, game_handler, game, mock_manager):
        await game_handler.handle_disconnect(game, "player-0")

        assert personal(mock_manager, Command.CAN_START) == []

    async def test_disconnect_in_game_resets(self, game_handler, game, mock_manager):
        game.start()

        await game_handler.handle_disconnect(game, "player-1")

        mock_manager.reset_game.assert_called_once_with("test-game")
        assert broadcasts(mock_manager, Command.GAME_RESET)
        mock_manager.close_game_connections.assert_awaited_once_with(
            "test-game", GAME_RESET_CLOSE_CODE, "Game reset"
        )

    async def test_unknown_player_ignored(self, game_handler, game, mock_manager):
        await game_handler.handle_disconnect(game, "nobody")

        mock_manager.broadcast_to_game.assert_not_called()

    async def test_reset_during_pause_drops_continuation(
        self, game_handler, game, mock_manager
    ):
        game.start()
        set_hands(
            game,
            [
                Card(Suit.DIAMONDS, "7"),
                Card(Suit.DIAMONDS, "9"),
                Card(Suit.CLUBS, "A"),
                Card(Suit.DIAMONDS, "K"),
            ],
        )
        order = list(game.current_round.turn_order)
        await declare_everyone(game_handler, game)
        mock_manager.get_game.return_value = Game(id="test-game")

        for player_id, (suit, value) in zip(
            order, [("DIAMONDS", "7"), ("DIAMONDS", "9"), ("CLUBS", "A"), ("DIAMONDS", "K")]
        ):
            await game_handler.handle_command(
                game, player_id, "PLAY_CARD", {"card": {"suit": suit, "value": value}}
            )
        await game_handler.wait_for_pending()

        assert broadcasts(mock_manager, Command.TRICK_WON)
        assert broadcasts(mock_manager, Command.ROUND_OVER) == []
        assert game.current_round.phase == RoundPhase.SCORING


class TestChatAndSync:
    """Tests for CHAT and SYNC_STATE commands."""

    async def test_chat_relayed(self, game_handler, game, mock_manager):
        await game_handler.handle_command(game, "player-0", "CHAT", {"message": "hello"})

        (message,) = broadcasts(mock_manager, Command.NEW_MESSAGE)
        assert message.content == {"name": "Player 0", "message": "hello"}

    async def test_chat_from_spectator(self, game_handler, game, mock_manager):
        await game_handler.handle_command(game, "ghost", "CHAT", {"message": "hi"})

        (message,) = broadcasts(mock_manager, Command.NEW_MESSAGE)
        assert message.content["name"] == "Spectator"

    async def test_empty_chat_ignored(self, game_handler, game, mock_manager):
        await game_handler.handle_command(game, "player-0", "CHAT", {"message": "  "})

        mock_manager.broadcast_to_game.assert_not_called()

    async def test_sync_state_reveals_only_own_hand(self, game_handler, game, mock_manager):
        game.start()

        await game_handler.handle_command(game, "player-2", "SYNC_STATE", {})

        [(receiver, message)] = personal(mock_manager, Command.GAME_STATE)
        assert receiver == "player-2"
        state = message.content
        assert state["phase"] == GamePhase.IN_PROGRESS.value
        assert state["round"]["number"] == 1
        hands = {p["id"]: p["hand"] for p in state["players"]}
        assert len(hands["player-2"]) == 1
        assert all(hands[pid] is None for pid in hands if pid != "player-2")

    async def test_unknown_command_ignored(self, game_handler, game, mock_manager):
        await game_handler.handle_command(game, "player-0", "SHUFFLE", {})

        mock_manager.send_personal_message.assert_not_called()
        mock_manager.broadcast_to_game.assert_not_called()
