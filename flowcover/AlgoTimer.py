# encoding:utf-8
"""
@time   :    2026/10/12 10:05
@project:    FlowCover
"""
import time

from logger_config import logger


class AlgoTimer:

    def __init__(self, start_time):
        """
        :param start_time: usually the value of time.time() at the start of the run
        """
        self.start_time = start_time
        self.last_check_time = start_time
        self.check_points = {}

    def check_point(self, *args):
        """
        Log the time spent since the previous check point (or since start for the first one).
        """
        current_time = time.time()
        elapsed_time = current_time - self.last_check_time

        message = ' '.join(str(arg) for arg in args)
        logger.info(f"{message} cost: {elapsed_time:.3f}s")
        self.check_points[message] = elapsed_time

        self.last_check_time = current_time

    def time_to_start(self, *args):
        message = ' '.join(str(arg) for arg in args)
        elapsed_time = time.time() - self.start_time
        logger.info(f"{message} since start: {elapsed_time:.3f}s")
        return elapsed_time
