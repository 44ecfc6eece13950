# Game action handlers for socket events
from util.logging_utils import debug_log
from .messages import parse_message


class GameHandlers:
    """Handles in-game actions: buzzing, clearing the round, awarding points"""

    def __init__(self, gateway):
        self.gateway = gateway

    def handle_buzz(self, data=None):
        """Handle a buzz; broadcasts the full ordered queue"""
        message = parse_message('buzz', data)
        room = self.gateway.registry.require_room(message.code)

        room.record_buzz(message.user.name, message.user.team)
        self.gateway.broadcaster.buzzes(room)
        debug_log(f"{message.user.name} from team {message.user.team} buzzed", message.user.identity, room.code)

    def handle_clear(self, data=None):
        """Handle the host clearing buzzes for the next round"""
        message = parse_message('clear', data)
        room = self.gateway.registry.require_room(message.code)

        room.clear_buzzes()
        self.gateway.broadcaster.buzzes(room)
        debug_log("Buzzes cleared", None, room.code)

    def handle_award_point(self, data=None):
        """Handle the host awarding a point to a team"""
        message = parse_message('awardPoint', data)
        room = self.gateway.registry.require_room(message.code)

        room.award_point(message.team)
        self.gateway.broadcaster.scores(room)
