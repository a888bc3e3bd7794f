"""状态机流转单元测试

测试内容：
1. 合法流转通过
2. 非法流转被拒绝
3. 终态（Verified / 联系失败类）没有状态更新出口
"""

import pytest
from fieldops.core.models.enums import (
    OUTCOME_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    TaskStatus,
    validate_transition,
)


class TestStateMachineTransitions:
    """状态机流转验证"""

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (TaskStatus.PENDING, TaskStatus.COMPLETED),
            (TaskStatus.PENDING, TaskStatus.LEFT_JOB),
            (TaskStatus.PENDING, TaskStatus.NOT_SHARING_INFO),
            (TaskStatus.PENDING, TaskStatus.NOT_PICKING),
            (TaskStatus.PENDING, TaskStatus.SWITCH_OFF),
            (TaskStatus.PENDING, TaskStatus.INCORRECT_NUMBER),
            (TaskStatus.PENDING, TaskStatus.WRONG_ADDRESS),
            (TaskStatus.COMPLETED, TaskStatus.VERIFIED),
        ],
    )
    def test_valid_transition(self, from_status: TaskStatus, to_status: TaskStatus):
        """合法流转应通过验证"""
        assert validate_transition(from_status, to_status) is True

    @pytest.mark.parametrize(
        "from_status,to_status",
        [
            (TaskStatus.UNASSIGNED, TaskStatus.PENDING),
            (TaskStatus.UNASSIGNED, TaskStatus.COMPLETED),
            (TaskStatus.PENDING, TaskStatus.VERIFIED),
            (TaskStatus.PENDING, TaskStatus.UNASSIGNED),
            (TaskStatus.COMPLETED, TaskStatus.PENDING),
            (TaskStatus.COMPLETED, TaskStatus.LEFT_JOB),
        ],
    )
    def test_invalid_transition(self, from_status: TaskStatus, to_status: TaskStatus):
        """非法流转应被拒绝"""
        assert validate_transition(from_status, to_status) is False

    def test_all_terminal_states_cannot_transition(self):
        """所有终态都不能再通过状态更新流转"""
        for terminal in TERMINAL_STATES:
            for target in TaskStatus:
                assert validate_transition(terminal, target) is False, (
                    f"终态 {terminal} 不应能流转到 {target}"
                )

    def test_outcome_states_only_reachable_from_pending(self):
        for status, targets in VALID_TRANSITIONS.items():
            if status != TaskStatus.PENDING:
                assert not (targets & OUTCOME_STATES)

    def test_every_status_has_table_entry(self):
        assert set(VALID_TRANSITIONS) == set(TaskStatus)
