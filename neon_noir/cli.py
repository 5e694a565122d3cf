"""NEON NOIR 命令行工具.

提供两个开发者命令:
    simulate  用固定策略跑蒙特卡洛模拟，输出RTP和倍率分布
    weather   查询城市天气和天气提示（无API密钥时使用模拟数据）
"""

import asyncio
import json

import click

from .application import configure_logging, get_config_service
from .core.simulation import simulate as run_simulation
from .core.state_machine import GameKind
from .services.insight_service import GeminiInsightService, InsightContext


@click.group()
@click.option('--log-profile', default='default', show_default=True,
              help='日志配置档 (default, debug, production)')
@click.option('--config', 'config_path', type=click.Path(exists=True, dir_okay=False),
              help='YAML配置覆盖文件')
def main(log_profile: str, config_path: str) -> None:
    """NEON NOIR 游戏结果引擎工具."""
    configure_logging(profile=log_profile)
    if config_path:
        result = get_config_service().load_overrides(config_path)
        if not result.success:
            raise click.ClickException(result.message)


@main.command()
@click.argument('game', type=click.Choice([kind.value for kind in GameKind]))
@click.option('--rounds', default=10000, show_default=True, type=click.IntRange(min=1))
@click.option('--seed', default=42, show_default=True, type=int)
@click.option('--stake', default=100, show_default=True, type=click.IntRange(min=1))
@click.option('--mines', 'mine_count', type=click.IntRange(1, 24), help='Mines: 地雷数量')
@click.option('--reveals', type=click.IntRange(min=0), help='Mines: 每回合揭示格数')
@click.option('--rows', type=click.IntRange(8, 16), help='Plinko: 行数')
@click.option('--risk', type=click.Choice(['Low', 'Medium', 'High'], case_sensitive=False),
              help='Plinko: 风险等级')
@click.option('--json', 'as_json', is_flag=True, help='以JSON输出')
def simulate(game: str, rounds: int, seed: int, stake: int, as_json: bool, **options) -> None:
    """对GAME运行蒙特卡洛模拟."""
    options = {k: v for k, v in options.items() if v is not None}
    try:
        result = run_simulation(game, rounds=rounds, seed=seed, stake=stake, **options)
    except ValueError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    click.echo(f"游戏: {result.kind.value}  回合: {result.rounds}  种子: {seed}")
    click.echo(f"总下注: {result.total_staked}  总派彩: {result.total_paid}")
    click.echo(f"RTP: {result.rtp:.4f}  庄家优势: {result.house_edge:.4f}  命中率: {result.hit_rate:.4f}")
    click.echo(f"最大倍率: {result.max_multiplier:.2f}x")
    click.echo("倍率分布:")
    for bucket, count in sorted(result.distribution.items(), key=lambda item: -item[1]):
        click.echo(f"  {bucket:>8}: {count}")


@main.command()
@click.argument('city')
@click.option('--offline', is_flag=True, help='不访问网络，直接使用模拟数据')
def weather(city: str, offline: bool) -> None:
    """查询CITY的天气和天气提示."""
    profile = 'offline' if offline else 'default'
    config = get_config_service().get_insight_config(profile).data
    service = GeminiInsightService(config)

    async def fetch():
        snapshot = await service.fetch_weather(city)
        advisory = await service.fetch_insight(
            InsightContext.weather_advisory(snapshot.city, snapshot.condition, snapshot.temp)
        )
        return snapshot, advisory

    snapshot, advisory = asyncio.run(fetch())

    marker = " (模拟)" if snapshot.is_simulated else ""
    click.echo(f"{snapshot.city}{marker}: {snapshot.temp:.0f}°C, {snapshot.condition}")
    click.echo(f"湿度 {snapshot.humidity}  风速 {snapshot.wind_speed}")
    if snapshot.description:
        click.echo(snapshot.description)
    click.echo(advisory)


if __name__ == '__main__':
    main()
