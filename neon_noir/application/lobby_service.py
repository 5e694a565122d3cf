"""
CasinoLobbyService - 大厅控制器

组合根: 选择当前游戏、持有余额镜像、按回合驱动扣款/派彩，
推进庄家和Plinko小球的分帧动画，并把赢钱事件转发给洞察服务.

所有公开方法返回CommandResult/QueryResult，从不向调用方抛出核心层异常.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set, Union

from ..core.balance import BalanceMirror, BalanceMutationProtocol
from ..core.events import DomainEvent, EventBus, EventType, get_event_bus
from ..core.eval.poker_evaluator import PokerEvaluator
from ..core.rng import RandomSource, create_rng
from ..core.state_machine import (
    BaseGame,
    BlackjackGame,
    BlackjackPhase,
    GameFactory,
    GameKind,
    PlinkoGame,
    Round,
)
from ..services.account_store import AccountNotFoundError, AccountStore, Profile
from ..services.insight_service import InsightContext, InsightService
from .config_service import (
    CasinoRulesConfig,
    ConfigService,
    PlinkoPhysicsConfig,
    get_config_service,
)
from .types import CommandResult, QueryResult

__all__ = ['CasinoLobbyService', 'WELCOME_MESSAGE']

logger = logging.getLogger(__name__)

WELCOME_MESSAGE = "Welcome to the High Roller lounge."


class CasinoLobbyService:
    """
    大厅服务

    Examples:
        >>> lobby = CasinoLobbyService(store, insight)
        >>> await lobby.open(account_id)
        >>> lobby.select_game("mines")
        >>> await lobby.start_round(100, mine_count=3)
        >>> await lobby.perform("reveal", cell=7)
    """

    def __init__(self, account_store: AccountStore,
                 insight_service: Optional[InsightService] = None,
                 event_bus: Optional[EventBus] = None,
                 config_service: Optional[ConfigService] = None,
                 rules_profile: str = "default",
                 physics_profile: str = "default",
                 rng: Optional[RandomSource] = None):
        """
        Args:
            account_store: 账户存储
            insight_service: 洞察服务，为None时不生成文案
            event_bus: 事件总线，为None时使用全局实例
            config_service: 配置服务，为None时使用全局实例
            rules_profile: 规则配置档
            physics_profile: Plinko物理配置档
            rng: 所有游戏共享的随机源
        """
        self.account_store = account_store
        self.insight_service = insight_service
        self.event_bus = event_bus or get_event_bus()
        config_service = config_service or get_config_service()
        self.rules: CasinoRulesConfig = config_service.get_casino_rules_config(rules_profile).data
        self.physics: PlinkoPhysicsConfig = config_service.get_plinko_physics_config(physics_profile).data
        self._rng = rng or create_rng()

        self._account_id: Optional[str] = None
        self._profile: Optional[Profile] = None
        self._protocol: Optional[BalanceMutationProtocol] = None
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._games: Dict[GameKind, BaseGame] = {}
        self._active: Optional[GameKind] = None
        self._tasks: Set[asyncio.Task] = set()
        self._latest_insight = WELCOME_MESSAGE

    # ── 会话 ──────────────────────────────────────────────────

    @property
    def is_open(self) -> bool:
        return self._protocol is not None

    @property
    def balance(self) -> int:
        """本地乐观余额"""
        return self._protocol.mirror.balance if self._protocol else 0

    @property
    def protocol(self) -> Optional[BalanceMutationProtocol]:
        return self._protocol

    @property
    def active_game(self) -> Optional[BaseGame]:
        return self._games.get(self._active) if self._active else None

    @property
    def latest_insight(self) -> str:
        return self._latest_insight

    async def open(self, account_id: str) -> CommandResult:
        """
        打开账户会话: 读取资料、建立余额镜像并订阅远程变更

        Args:
            account_id: 账户ID

        Returns:
            CommandResult: 操作结果
        """
        if self.is_open:
            return CommandResult.business_rule_violation("会话已经打开", "SESSION_ALREADY_OPEN")
        try:
            profile = await self.account_store.get_profile(account_id)
        except AccountNotFoundError as e:
            logger.warning(f"[大厅] {e.message}")
            return CommandResult.failure_result(e.message, e.error_code)

        self._account_id = account_id
        self._profile = profile
        mirror = BalanceMirror(account_id, profile.balance)
        self._protocol = BalanceMutationProtocol(
            mirror,
            self.account_store,
            event_bus=self.event_bus,
            write_timeout=self.rules.remote_write_timeout,
        )
        self._unsubscribe = self.account_store.subscribe_profile(account_id, self._on_profile)
        self.event_bus.subscribe(EventType.PLAYER_WON, self._on_player_won)
        logger.info(f"[大厅] {profile.username} 进入大厅，余额 {profile.balance}")

        if self.insight_service is not None:
            self._spawn(self._refresh_fortune(0))
        return CommandResult.success_result("会话已打开", {'balance': profile.balance})

    async def close(self) -> CommandResult:
        """
        关闭会话: 等待进行中的小球和文案任务，取消资料订阅

        仍有已扣款但未结算的回合时拒绝关闭，会话保持打开，
        玩家完成这些回合后再关闭.

        Returns:
            CommandResult: 有未结算回合时error_code为ROUND_IN_PROGRESS
        """
        if not self.is_open:
            return CommandResult.business_rule_violation("会话未打开", "SESSION_NOT_OPEN")
        await self.wait_idle()
        pending = self._protocol.pending_rounds
        if pending:
            logger.warning(f"[大厅] 还有 {len(pending)} 个已扣款回合未结算，拒绝关闭会话")
            return CommandResult.business_rule_violation(
                f"还有 {len(pending)} 个回合未结算", "ROUND_IN_PROGRESS"
            )

        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.event_bus.unsubscribe(EventType.PLAYER_WON, self._on_player_won)
        self._protocol = None
        logger.info("[大厅] 会话已关闭")
        return CommandResult.success_result("会话已关闭")

    async def wait_idle(self) -> None:
        """等待所有后台任务（小球、文案）完成"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def _on_profile(self, profile: Profile) -> None:
        self._profile = profile
        if self._protocol is not None:
            self._protocol.mirror.sync(profile.balance)
        self.event_bus.publish(DomainEvent.create(
            EventType.PROFILE_SYNCED,
            aggregate_id=profile.account_id,
            data={'balance': profile.balance},
        ))

    # ── 游戏选择 ──────────────────────────────────────────────

    def select_game(self, kind: Union[GameKind, str]) -> CommandResult:
        """
        选择当前游戏；每种游戏的实例在会话内复用

        Args:
            kind: 游戏种类

        Returns:
            CommandResult: 操作结果
        """
        try:
            game_kind = GameKind.parse(kind)
        except ValueError as e:
            return CommandResult.validation_error(str(e), "UNKNOWN_GAME")

        if game_kind not in self._games:
            self._games[game_kind] = self._create_game(game_kind)
        self._active = game_kind
        self.event_bus.publish(DomainEvent.create(
            EventType.GAME_SELECTED,
            aggregate_id=self._account_id or "anonymous",
            data={'game': game_kind.value},
        ))
        return CommandResult.success_result(f"已选择 {game_kind.value}", {'game': game_kind.value})

    def get_game(self, kind: Union[GameKind, str]) -> Optional[BaseGame]:
        return self._games.get(GameKind.parse(kind))

    def _create_game(self, kind: GameKind) -> BaseGame:
        rules = self.rules
        settings: Dict[str, Any] = {'min_stake': rules.min_stake_for(kind.value)}
        if kind == GameKind.MINES:
            settings.update(
                house_edge=rules.mines_house_edge,
                grid_size=rules.mines_grid_size,
                min_mines=rules.mines_min_count,
                max_mines=rules.mines_max_count,
            )
        elif kind == GameKind.PLINKO:
            settings.update(
                board=self.physics.to_board(),
                rows=self.physics.default_rows,
                risk=self.physics.default_risk,
                tick_budget=self.physics.tick_budget,
            )
        elif kind == GameKind.BLACKJACK:
            settings.update(
                dealer_stand_value=rules.blackjack_dealer_stand,
                natural_multiplier=rules.blackjack_natural_multiplier,
            )
        elif kind == GameKind.POKER:
            settings.update(evaluator=PokerEvaluator(ace_low_straights=rules.poker_ace_low_straights))
        return GameFactory.create_game(kind, rng=self._rng, **settings)

    # ── 回合 ──────────────────────────────────────────────────

    async def start_round(self, stake: int, **options: Any) -> CommandResult:
        """
        在当前游戏开始新回合并扣除下注

        Plinko的小球在后台任务中下落，本方法在发射后立即返回.

        Args:
            stake: 下注金额
            **options: 游戏相关参数

        Returns:
            CommandResult: 非法下注时error_code为INVALID_STAKE，非法状态时为INVALID_TRANSITION
        """
        game = self.active_game
        precheck = self._precheck(game)
        if precheck is not None:
            return precheck

        if not game.start(stake, balance=self.balance, **options):
            return self._rejected(game, "start")

        game_round = game.current_round
        await self._protocol.debit(game_round.round_id, game_round.stake)
        self.event_bus.publish(DomainEvent.create(
            EventType.ROUND_STARTED,
            aggregate_id=self._account_id,
            data=game_round.to_dict(),
            correlation_id=game_round.round_id,
        ))

        if isinstance(game, PlinkoGame):
            self._spawn(self._run_ball(game, game_round.round_id))
        else:
            await self._settle_pending(game)

        return CommandResult.success_result("回合已开始", self._round_data(game_round))

    async def perform(self, action: str, **params: Any) -> CommandResult:
        """
        在当前游戏执行玩家动作

        Blackjack进入庄家回合时在此处按dealer_step_delay逐张推进直到结算.

        Args:
            action: 动作名（reveal、cash_out、hit、stand、toggle_hold、draw、step_ball）
            **params: 动作参数

        Returns:
            CommandResult: 操作结果
        """
        game = self.active_game
        precheck = self._precheck(game)
        if precheck is not None:
            return precheck

        if not game.act(action, **params):
            return self._rejected(game, action)

        if isinstance(game, BlackjackGame) and game.phase == BlackjackPhase.DEALER_TURN:
            await self._run_dealer(game)
        await self._settle_pending(game)

        return CommandResult.success_result("操作成功", self._round_data(game.current_round))

    def get_round(self) -> QueryResult[Optional[Round]]:
        """查询当前游戏的当前回合"""
        game = self.active_game
        if game is None:
            return QueryResult.failure_result("尚未选择游戏", "NO_ACTIVE_GAME")
        return QueryResult.success_result(game.current_round)

    def _precheck(self, game: Optional[BaseGame]) -> Optional[CommandResult]:
        if not self.is_open:
            return CommandResult.business_rule_violation("会话未打开", "SESSION_NOT_OPEN")
        if game is None:
            return CommandResult.business_rule_violation("尚未选择游戏", "NO_ACTIVE_GAME")
        return None

    def _rejected(self, game: BaseGame, operation: str) -> CommandResult:
        error = game.last_error
        self.event_bus.publish(DomainEvent.create(
            EventType.INVALID_ACTION_ATTEMPTED,
            aggregate_id=self._account_id,
            data={
                'game': game.kind.value,
                'operation': operation,
                'error_code': error.error_code if error else None,
            },
        ))
        return CommandResult.from_error(error)

    async def _run_dealer(self, game: BlackjackGame) -> None:
        while game.phase == BlackjackPhase.DEALER_TURN:
            if not game.step():
                break
            if game.phase == BlackjackPhase.DEALER_TURN and self.rules.dealer_step_delay > 0:
                await asyncio.sleep(self.rules.dealer_step_delay)

    async def _run_ball(self, game: PlinkoGame, ball_id: str) -> None:
        interval = self.physics.tick_interval
        while ball_id in game.in_flight:
            if not game.step_ball(ball_id):
                break
            # 即使间隔为0也让出事件循环，保证多个小球交替推进
            await asyncio.sleep(interval)
        await self._settle_pending(game)
        game.discard_landed()

    async def _settle_pending(self, game: BaseGame) -> None:
        for settled in game.pop_settled_rounds():
            await self._protocol.credit(settled.round_id, settled.payout)
            self.event_bus.publish(DomainEvent.create(
                EventType.ROUND_SETTLED,
                aggregate_id=self._account_id,
                data=settled.to_dict(),
                correlation_id=settled.round_id,
            ))
            if settled.payout > 0 and settled.outcome.get('result') != 'push':
                self.event_bus.publish(DomainEvent.create(
                    EventType.PLAYER_WON,
                    aggregate_id=self._account_id,
                    data={'win': settled.payout, 'balance': self.balance, 'game': settled.kind.value},
                    correlation_id=settled.round_id,
                ))

    @staticmethod
    def _round_data(game_round: Optional[Round]) -> Dict[str, Any]:
        return game_round.to_dict() if game_round else {}

    # ── 洞察 ──────────────────────────────────────────────────

    def _on_player_won(self, event: DomainEvent) -> None:
        if self.insight_service is None or event.aggregate_id != self._account_id:
            return
        self._spawn(self._refresh_fortune(event.data.get('win', 0)))

    async def _refresh_fortune(self, win: int) -> None:
        context = InsightContext.casino_fortune(balance=self.balance, win=win)
        self._latest_insight = await self.insight_service.fetch_insight(context)
        logger.debug(f"[洞察] {self._latest_insight}")

    def _spawn(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def pending_tasks(self) -> List[asyncio.Task]:
        return list(self._tasks)
