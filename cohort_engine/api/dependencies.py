from cohort_engine.core.clock import Clock, system_clock

def get_clock() -> Clock:
    return system_clock
