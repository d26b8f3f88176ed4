import os
from multiprocess import Pool
from typing import Callable, List, Optional

from mithril.metrics import Metrics
from mithril.simulation import Simulation


def run_simulation(simulation: Simulation) -> Metrics:
    return simulation.run()


class Runner:
    """
    Runs independent simulations in parallel, one process per simulation.
    """

    def __init__(
        self,
        simulation_factory: Callable[[], Simulation],
        simulations_number: int,
        processes: Optional[int] = None,
    ):
        self.simulation_factory = simulation_factory
        self.simulations_number = simulations_number
        self.processes = processes or min(simulations_number, os.cpu_count() or 1)

    def run(self) -> List[Metrics]:
        simulations = [self.simulation_factory() for _ in range(self.simulations_number)]
        with Pool(self.processes) as pool:
            return pool.map(run_simulation, simulations)
