from datetime import datetime

from sudokusphere.domain.game_rules import HINTS_PER_PLAYER, max_players
from sudokusphere.domain.notes import decode_notes, notes_to_lists
from sudokusphere.models.dc_models import (
    CellModel,
    GameStateModel,
    GameSummaryModel,
    PlayerStateModel,
)
from sudokusphere.models.schema_models import (
    ActiveGameSchema,
    GameRecordSchema,
    GameSessionSchema,
)


class DataConverter:
    """This class is used to convert data between different formats."""

    def convert_gamesession_to_gamestatemodel(self, game: GameSessionSchema) -> GameStateModel:
        """Convert the stored GameSessionSchema to the GameStateModel to send client

        Args:
            game (GameSessionSchema): The stored game, solution included

        Returns:
            GameStateModel: The game as players may see it, without the solution
        """
        players = {
            player_id: PlayerStateModel(
                player_id=player.player_id,
                board=player.board,
                notes=notes_to_lists(decode_notes(player.notes)),
                errors=player.errors,
                elapsed_seconds=player.elapsed_seconds,
                hints=player.hints,
                error_cells=[CellModel(row=cell.row, col=cell.col) for cell in player.error_cells],
            )
            for player_id, player in game.players.items()
        }
        return GameStateModel(
            game_id=game.game_id,
            puzzle=game.puzzle,
            difficulty=game.difficulty,
            mode=game.mode,
            status=game.status,
            players=players,
            max_players=max_players(game.mode),
            winner=game.winner,
            created_at=game.created_at,
            started_at=game.started_at,
            expires_at=game.expires_at,
        )

    def convert_gamesession_to_summarymodel(self, game: GameSessionSchema) -> GameSummaryModel:
        return GameSummaryModel(
            game_id=game.game_id,
            difficulty=game.difficulty,
            mode=game.mode,
            status=game.status,
            player_count=len(game.players),
            max_players=max_players(game.mode),
        )

    def convert_gamesession_to_activegameschema(self, game: GameSessionSchema) -> ActiveGameSchema:
        return ActiveGameSchema(
            game_id=game.game_id,
            difficulty=game.difficulty,
            mode=game.mode,
            player_count=len(game.players),
            max_players=max_players(game.mode),
            created_at=game.created_at,
        )

    def convert_gamesession_to_gamerecordschema(
        self, game: GameSessionSchema, completed_at: datetime
    ) -> GameRecordSchema:
        """Summarize a finished game for the historical record

        Args:
            game (GameSessionSchema): The finished game
            completed_at (datetime): When the game finished

        Returns:
            GameRecordSchema: Participants, outcome, duration and totals. Hints are counted as used,
                not remaining. is_completed is True only when the puzzle was solved.
        """
        players = list(game.players.values())
        return GameRecordSchema(
            game_id=game.game_id,
            players=[player.player_id for player in players],
            difficulty=game.difficulty.value,
            mode=game.mode.value,
            completed_at=completed_at,
            winner=game.winner,
            duration=max((player.elapsed_seconds for player in players), default=0.0),
            total_errors=sum(player.errors for player in players),
            total_hints=sum(HINTS_PER_PLAYER - player.hints for player in players),
            is_completed=game.winner is not None,
        )
