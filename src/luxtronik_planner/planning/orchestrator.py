"""This module ties planning and device control together for a single run.

A run reads the published spot prices and the state of the previous run, plans
the cheapest tap-water heating window and decides whether it should be a
disinfection cycle. The chosen window is programmed into the heat pump's weekly
tap-water timer, continuous disinfection is toggled when the decision changed,
and the tap-water setpoint is adjusted. Only after all of that succeeded the new
state is stored.

Optionally, the costliest upcoming heating window is blocked in the heating
timer afterwards, using a separate session.
"""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from luxtronik_planner.device.gestures import toggle_continuous_disinfection
from luxtronik_planner.device.schedule_codec import (
    HEATING_WEEK_PATH,
    TAP_WATER_WEEK_PATH,
    ScheduleCodec,
)
from luxtronik_planner.device.session import DeviceSession
from luxtronik_planner.device.temperature import TemperatureAdjuster
from luxtronik_planner.planning.decision import (
    select_window_for_blocking,
    select_window_for_run,
)
from luxtronik_planner.planning.jitter import JitterSpreader
from luxtronik_planner.planning.planner import PlanningStrategy, PricePlanner
from luxtronik_planner.planning.spot_prices import PriceWindow, SpotPrice
from luxtronik_planner.retrievers.config import Config, DeviceConnectionConfig
from luxtronik_planner.retrievers.spot_prices_client import SpotPricesStateClient
from luxtronik_planner.retrievers.state_client import RunState, StateClient
from luxtronik_planner.util.logging import LoggingUtil

logger = LoggingUtil.get_logger(__name__)

SessionFactory = Callable[[str, int, Optional[float]], DeviceSession]


class PlannerService:
    def __init__(
        self,
        config: Config,
        connection_config: DeviceConnectionConfig,
        spot_prices_client: SpotPricesStateClient,
        state_client: StateClient,
        planner: Optional[PricePlanner] = None,
        jitter: Optional[JitterSpreader] = None,
        session_factory: SessionFactory = DeviceSession,
    ) -> None:
        """Initializes the service.

        Args:
            config: The planning configuration.
            connection_config: How to reach the heat pump.
            spot_prices_client: Source of the published spot prices.
            state_client: Store for the state between runs.
            planner: The price planner; a default one if omitted.
            jitter: The jitter spreader; a randomly seeded one if omitted.
            session_factory: Creates a session from host, port and timeout.
        """
        self.config = config
        self.connection_config = connection_config
        self.spot_prices_client = spot_prices_client
        self.state_client = state_client
        self.planner = planner or PricePlanner()
        self.jitter = jitter or JitterSpreader()
        self.session_factory = session_factory

    def run(self, now: Optional[datetime] = None) -> RunState:
        """Plans and programs the next tap-water window.

        Args:
            now: The current time; the wall clock if omitted.

        Returns:
            The state after this run. It equals the previous state if there was
            nothing to program.

        Raises:
            PlannerError: If the heat pump cannot be reached or behaves unexpectedly,
                          or if the configuration is inconsistent.
        """
        now = now or datetime.now(timezone.utc)
        logger.info("Starting planner run at %s", now.isoformat())

        previous_state = self.state_client.read_state()
        if previous_state is None:
            logger.info("No usable previous state, assuming a first run")
            previous_state = RunState.initial(now)
        elif previous_state.disinfection_finished_at is None:
            logger.info("Previous state has no disinfection time, assuming the first run default")
            previous_state = replace(
                previous_state,
                disinfection_finished_at=RunState.initial(now).disinfection_finished_at,
            )

        spot_prices = self.spot_prices_client.read_future_spot_prices(now)

        window, disinfect = self._select_tap_water_window(now, spot_prices, previous_state)
        window = self.jitter.apply(window, self.config.jitter_max_minutes)

        state = previous_state
        if not window:
            logger.warning("No tap water window could be planned, leaving the heat pump as it is")
        else:
            self._program_tap_water(window, disinfect, previous_state.disinfection_enabled)

            state = RunState(
                disinfection_enabled=disinfect,
                disinfection_finished_at=(
                    window[-1].till_time if disinfect else previous_state.disinfection_finished_at
                ),
                planned_spot_prices=window,
            )
            self.state_client.store_state(state)

        if self.config.enable_blocking_worst_heating_times:
            self._block_worst_heating_window(now, spot_prices)

        logger.info("Planner run finished")
        return state

    def _select_tap_water_window(
        self, now: datetime, spot_prices: List[SpotPrice], previous_state: RunState
    ) -> Tuple[PriceWindow, bool]:
        horizon = now + timedelta(hours=self.config.maximum_hours_to_plan_ahead)
        local_time_zone = self.config.get_local_time_zone()
        heating_plan = self.planner.get_optimal_window(
            spot_prices,
            self.config.load_profile,
            PlanningStrategy.LOWEST_PRICE,
            now,
            horizon,
            time_slots=self.config.plannable_local_time_slots,
            time_zone=local_time_zone,
        )

        # disinfection may be planned over every known price
        last_known = max((spot_price.till_time for spot_price in spot_prices), default=now)
        lowest_disinfection_plan = self.planner.get_optimal_window(
            spot_prices,
            self.config.disinfection_load_profile,
            PlanningStrategy.LOWEST_PRICE,
            now,
            last_known,
            time_slots=self.config.disinfection_local_time_slots,
            time_zone=local_time_zone,
        )
        # the costliest window ignores the time slots
        highest_disinfection_plan = self.planner.get_optimal_window(
            spot_prices,
            self.config.disinfection_load_profile,
            PlanningStrategy.HIGHEST_PRICE,
            now,
            last_known,
        )

        return select_window_for_run(
            now,
            previous_state.disinfection_finished_at,
            heating_plan.spot_prices,
            lowest_disinfection_plan.spot_prices,
            highest_disinfection_plan.spot_prices,
            self.config.min_hours_since_last_disinfection,
            self.config.max_hours_since_last_disinfection,
        )

    def _program_tap_water(
        self, window: PriceWindow, disinfect: bool, disinfection_enabled: bool
    ) -> None:
        target_temperature = (
            self.config.disinfection_tap_water_temperature
            if disinfect
            else self.config.desired_tap_water_temperature
        )
        logger.info(
            "Programming tap water window %s - %s (disinfection: %s, setpoint %.1f)",
            window[0].from_time.isoformat(),
            window[-1].till_time.isoformat(),
            disinfect,
            target_temperature,
        )

        with self._new_session() as session:
            session.login(self.connection_config.login_code)
            codec = ScheduleCodec(session, self.config.get_heatpump_time_zone())
            codec.write_allowed_interval(TAP_WATER_WEEK_PATH, window)

            if disinfect != disinfection_enabled:
                logger.info("Switching continuous disinfection %s", "on" if disinfect else "off")
                toggle_continuous_disinfection(session)

            TemperatureAdjuster(session).set_temperature(target_temperature)

    def _block_worst_heating_window(self, now: datetime, spot_prices: List[SpotPrice]) -> None:
        horizon = now + timedelta(hours=self.config.maximum_hours_to_plan_ahead)
        highest_heating_plan = self.planner.get_optimal_window(
            spot_prices,
            self.config.heating_load_profile,
            PlanningStrategy.HIGHEST_PRICE,
            now,
            horizon,
        )

        window = select_window_for_blocking(now, highest_heating_plan.spot_prices)
        window = self.jitter.apply(window, self.config.jitter_max_minutes)
        if not window:
            logger.info("No heating window to block")
            return

        logger.info(
            "Blocking heating between %s and %s",
            window[0].from_time.isoformat(),
            window[-1].till_time.isoformat(),
        )
        with self._new_session() as session:
            session.login(self.connection_config.login_code)
            codec = ScheduleCodec(session, self.config.get_heatpump_time_zone())
            codec.write_blocked_interval(HEATING_WEEK_PATH, window)

    def _new_session(self) -> DeviceSession:
        return self.session_factory(
            self.connection_config.host_address,
            self.connection_config.host_port,
            self.connection_config.timeout_seconds,
        )
