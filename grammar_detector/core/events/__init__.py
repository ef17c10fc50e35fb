"""Detector notifications"""

from grammar_detector.core.events.event_emitter import DetectorEvent, EventEmitter, Subscription

__all__ = ['DetectorEvent', 'EventEmitter', 'Subscription']
