"""
STATE ENCODER - Unit Tests
"""

import pytest

from cheese_rl.agent.state_encoder import StateEncoder, TARGET_LEFT, TARGET_RIGHT
from cheese_rl.errors import AgentError, MissingFeatureError


class TestStateEncoder:

    def setup_method(self):
        self.encoder = StateEncoder(target='🧀', agent='🐭')

    def test_target_left_of_agent(self):
        assert self.encoder.encode(['🧀', '⬜', '🐭', '🐱']) == TARGET_LEFT == 0

    def test_target_right_of_agent(self):
        assert self.encoder.encode(['🐱', '🐭', '⬜', '🧀']) == TARGET_RIGHT == 1

    def test_adjacent_cells(self):
        assert self.encoder.encode(['🐭', '🧀']) == 1
        assert self.encoder.encode(['🧀', '🐭']) == 0

    def test_accepts_strings(self):
        encoder = StateEncoder(target='C', agent='P')
        assert encoder.encode('..P..C') == 1
        assert encoder.encode('C..P..') == 0

    def test_missing_target_raises(self):
        with pytest.raises(MissingFeatureError) as info:
            self.encoder.encode(['⬜', '🐭', '🐱'])
        assert info.value.symbol == '🧀'

    def test_missing_agent_raises(self):
        with pytest.raises(MissingFeatureError) as info:
            self.encoder.encode(['🧀', '⬜', '🐱'])
        assert info.value.symbol == '🐭'

    def test_missing_feature_is_agent_and_lookup_error(self):
        with pytest.raises(AgentError):
            self.encoder.encode([])
        with pytest.raises(LookupError):
            self.encoder.encode([])
