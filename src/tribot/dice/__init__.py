"""
Randomized games.

- **dice_roller.py**: Dice-notation parser/evaluator with a hard cap on dice count.
- **coin_flip.py**: Coin flips (capped) and Magic Eight Ball answers.
"""
