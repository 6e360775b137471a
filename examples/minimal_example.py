#!/usr/bin/env python3
"""
Minimal Example: flowtrack API Usage
====================================

Shows the essential API calls without the CLI. Equivalent to:
    flowtrack track --video drive.mp4 --no-display -out csv
"""

import sys

import numpy as np

from flowtrack.core.config import TrackingConfig
from flowtrack.core.video import VideoSource
from flowtrack.tracking import TrackMaintainer

input_video = sys.argv[1] if len(sys.argv) > 1 else "drive.mp4"

maintainer = TrackMaintainer(TrackingConfig(max_feature_count=300, reinit_policy="on_empty"))

with VideoSource(input_video) as source:
    previous = None
    for raw in source:
        step = maintainer.update(raw)

        if step.mask is not None and previous is not None:
            # Flow vectors of the surviving points, in half-resolution pixels
            flow = step.points - previous[step.mask]
            mean_flow = flow.mean(axis=0) if len(flow) else np.zeros(2)
            print(
                f"Frame {step.frame}: {step.tracked} tracked, {step.lost} lost, "
                f"mean flow ({mean_flow[0]:+.2f}, {mean_flow[1]:+.2f})"
            )
        elif step.reinitialized:
            print(f"Frame {step.frame}: selected {step.selected} features")

        previous = step.points

        # Refresh the point set every 100 frames
        if step.frame % 100 == 0:
            maintainer.request_reinitialize()
