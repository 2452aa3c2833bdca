"""Per-player redacted views of the shared game state.

Every broadcast builds one ``StateView`` per player. Roles and alignments
stay hidden until GAME_OVER, with two exceptions: evil players can always
see which other players are evil, and a Doctor sees their own heal count.
"""

from typing import TYPE_CHECKING, Optional

from pydantic import BaseModel, Field

from ..player import Player
from ..types import GamePhase

if TYPE_CHECKING:
    from ..game import GameSession


class JailChatLine(BaseModel):
    sender: str
    message: str


class JailInfo(BaseModel):
    """Jail details, only for the Jailor and their prisoner during NIGHT."""

    is_jailor: bool
    is_jailed: bool
    prisoner_name: Optional[str] = None
    jailor_name: Optional[str] = None
    jail_chat: list[JailChatLine] = Field(default_factory=list)


class VampireInfo(BaseModel):
    """Coordination details for evil players on bite nights."""

    total_vampires: int
    required_votes: int = 1
    needs_voting: bool


class PlayerView(BaseModel):
    """One entry of the player list as a given viewer sees it."""

    id: str
    name: str
    alive: bool
    votes: int = Field(0, description="Day votes against this player, only during DAY_VOTE")
    is_npc: bool = False
    role: Optional[str] = Field(None, description="Only revealed at GAME_OVER")
    alignment: Optional[str] = Field(None, description="Only revealed at GAME_OVER")
    is_vampire: Optional[bool] = Field(None, description="Set only for evil viewers")
    vampire_votes: Optional[int] = Field(None, description="Bite votes, evil viewers on bite nights")


class StateView(BaseModel):
    """The full snapshot sent to one player."""

    code: str
    host: Optional[str]
    state: GamePhase
    round: int
    timer: int
    winner: Optional[str] = None
    logs: list[str] = Field(default_factory=list)
    chat: list[str] = Field(default_factory=list)
    heals_remaining: Optional[int] = None
    players: list[PlayerView] = Field(default_factory=list)
    vampire_info: Optional[VampireInfo] = None
    jail_info: Optional[JailInfo] = None


class PlayerRoleInfo(BaseModel):
    """Host tool view of a single player's hidden state."""

    player_id: str
    name: str
    role: Optional[str]
    alignment: Optional[str]
    is_npc: bool
    alive: bool

    @classmethod
    def from_player(cls, player: Player) -> "PlayerRoleInfo":
        return cls(
            player_id=player.id,
            name=player.name,
            role=player.role.value if player.role else None,
            alignment=player.alignment.value if player.alignment else None,
            is_npc=player.is_npc,
            alive=player.alive,
        )


class VisibilityProjector:
    """Builds redacted state views for a session."""

    def project(self, session: "GameSession", viewer: Player) -> StateView:
        """Build the view ``viewer`` is allowed to see."""
        state = session.state
        game_over = state == GamePhase.GAME_OVER
        evil_viewer = viewer.is_evil()
        bite_night = state == GamePhase.NIGHT and session.round % 2 == 0
        show_bites = evil_viewer and bite_night

        bite_votes = session.ledger.bite_votes() if show_bites else {}
        day_votes = session.lynch.vote_counts() if state == GamePhase.DAY_VOTE else {}

        players = []
        for player in session.roster.players:
            players.append(
                PlayerView(
                    id=player.id,
                    name=player.name,
                    alive=player.alive,
                    votes=day_votes.get(player.id, 0),
                    is_npc=player.is_npc,
                    role=player.role.value if game_over and player.role else None,
                    alignment=player.alignment.value if game_over and player.alignment else None,
                    is_vampire=player.is_evil() if evil_viewer else None,
                    vampire_votes=bite_votes.get(player.id, 0) if show_bites else None,
                )
            )

        view = StateView(
            code=session.code,
            host=session.host_id,
            state=state,
            round=session.round,
            timer=session.timer.remaining,
            winner=session.winner.value if session.winner else None,
            logs=list(session.logs),
            chat=list(session.chat),
            players=players,
        )
        if viewer.heals_remaining is not None:
            view.heals_remaining = viewer.heals_remaining
        if show_bites:
            biters = session.roster.alive_biters()
            view.vampire_info = VampireInfo(
                total_vampires=len(biters), needs_voting=len(biters) > 1
            )
        if state == GamePhase.NIGHT and session.jail.involves(viewer.id):
            view.jail_info = self._jail_info(session, viewer)
        return view

    def _jail_info(self, session: "GameSession", viewer: Player) -> JailInfo:
        jail = session.jail
        is_jailor = viewer.id == jail.jailor_id
        prisoner = session.roster.get(jail.jailed_player_id)
        jailor = session.roster.get(jail.jailor_id)
        return JailInfo(
            is_jailor=is_jailor,
            is_jailed=not is_jailor,
            prisoner_name=prisoner.name if is_jailor and prisoner else None,
            jailor_name=jailor.name if not is_jailor and jailor else None,
            jail_chat=[JailChatLine(sender=m.sender, message=m.message) for m in jail.chat],
        )
