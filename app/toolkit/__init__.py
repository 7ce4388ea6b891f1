"""
Contracts for collaborators outside this service.

    toolkit.protocols.NotificationSender   push / in-app notifications
    toolkit.protocols.PointsAwarder        gamification points

payments.dispatch provides the HTTP implementations.
"""
