import io

import pytest
from console import main as console_main
from console.main import handle_command, load_settings, read_line, read_player_request, run_game
from console.screen import Screen, wrap_labels
from gofish.game import CPU_NAME, GameState, choose_cpu_rank
from gofish.models import INVALID_RANK, rank_label


def make_game(seed=5):
    gs = GameState(seed=seed)
    gs.add_player("Ann")
    gs.add_player(CPU_NAME, is_cpu=True)
    gs.start()
    return gs


def small_screen(monkeypatch, size=(60, 24)):
    screen = Screen(io.StringIO(), color=False)
    monkeypatch.setattr(screen, "get_size", lambda: size)
    return screen


def test_read_player_request_parses_rank():
    gs = make_game()
    assert read_player_request(gs, lambda prompt: "queen") == 12
    assert read_player_request(gs, lambda prompt: "banana") == INVALID_RANK


def test_query_commands_do_not_consume_turn():
    gs = make_game()
    assert read_player_request(gs, lambda prompt: "?deck") is None
    assert str(gs.log.recent(1)[0]).endswith("Deck length: 38")
    assert handle_command("?hand", gs)
    assert "Your hand:" in gs.log.recent(1)[0].text
    assert handle_command("?what", gs)
    assert "Unknown command" in gs.log.recent(1)[0].text
    assert not handle_command("7", gs)
    assert gs.turn == 1
    assert gs.current_player().name == "Ann"


def test_unreadable_input_is_fatal(monkeypatch):
    def boom(prompt=""):
        raise EOFError

    monkeypatch.setattr("builtins.input", boom)
    with pytest.raises(SystemExit):
        read_line("> ")


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("GOFISH_SEED", "12")
    monkeypatch.setenv("GOFISH_CPU_DELAY", "0")
    monkeypatch.setenv("GOFISH_PLAYER_NAME", "Ann")
    monkeypatch.delenv("GOFISH_LOG_SIZE", raising=False)
    s = load_settings()
    assert s.seed == 12
    assert s.cpu_delay == 0
    assert s.player_name == "Ann"
    assert s.log_size == 8


def test_bad_settings_abort(monkeypatch):
    monkeypatch.setenv("GOFISH_SEED", "abc")
    with pytest.raises(SystemExit):
        load_settings()


def test_wrap_labels():
    assert wrap_labels(["♥2", "♥3", "♥4"], 6) == ["♥2 ♥3", "♥4"]
    assert wrap_labels([], 10) == []


def test_render_shows_state(monkeypatch):
    gs = make_game()
    screen = small_screen(monkeypatch)
    screen.render(len(gs.deck), gs.standings(), gs.players[0].hand_labels(), list(gs.log))
    out = screen.out.getvalue()
    assert "Go Fish v" in out
    assert "Cards left in deck: 38" in out
    assert "Ann: 0" in out
    assert gs.players[0].hand_labels()[0] in out
    assert "Dealt 7 cards each" in out


def test_render_tiny_terminal_does_not_fail(monkeypatch):
    gs = make_game()
    screen = small_screen(monkeypatch, size=(10, 4))
    screen.render(len(gs.deck), gs.standings(), gs.players[0].hand_labels(), list(gs.log))
    assert "Go Fish" in screen.out.getvalue()


def test_run_game_to_the_end(monkeypatch):
    gs = make_game(seed=9)
    screen = small_screen(monkeypatch)
    typed = ["?help", "fish", "1"]

    def fake_read(prompt):
        # сначала пара неверных вводов, потом играем как компьютер
        if typed:
            return typed.pop(0)
        return rank_label(choose_cpu_rank(gs.current_player())).lower()

    winner = run_game(gs, screen, read=fake_read)
    assert gs.total_books() == 13
    assert winner is gs.standings()[0]
    out = screen.out.getvalue()
    assert "GAME OVER" in out
    assert f"{winner.name} wins with {winner.score} books!" in out


def test_main_wires_settings_into_game(monkeypatch):
    monkeypatch.setenv("GOFISH_SEED", "4")
    monkeypatch.setenv("GOFISH_CPU_DELAY", "0")
    monkeypatch.delenv("GOFISH_PLAYER_NAME", raising=False)
    monkeypatch.delenv("GOFISH_LOG_SIZE", raising=False)
    monkeypatch.setattr(console_main, "load_dotenv", lambda: None)
    monkeypatch.setattr(console_main, "setup_logging", lambda settings: None)
    monkeypatch.setattr(Screen, "get_size", lambda self: (60, 24))
    captured = {}

    def fake_run(state, screen, cpu_delay=0.0):
        captured["state"] = state
        captured["delay"] = cpu_delay

    monkeypatch.setattr(console_main, "run_game", fake_run)
    monkeypatch.setattr("builtins.input", lambda prompt="": "")
    console_main.main()
    state = captured["state"]
    assert [p.name for p in state.players] == ["Player", CPU_NAME]
    assert captured["delay"] == 0


def test_ctrl_c_at_name_prompt_exits_quietly(monkeypatch, capsys):
    monkeypatch.setattr(console_main, "load_dotenv", lambda: None)
    monkeypatch.setattr(console_main, "setup_logging", lambda settings: None)

    def interrupt(prompt=""):
        raise KeyboardInterrupt

    monkeypatch.setattr("builtins.input", interrupt)
    console_main.main()
    assert "Bye!" in capsys.readouterr().out
